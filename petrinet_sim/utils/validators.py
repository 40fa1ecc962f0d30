"""
数据验证工具
提供网络模型和编辑操作的验证功能

功能:
- 网络模型验证（ID唯一、弧端点、二部方向、执行状态）
- 新建弧的连接验证
"""

from typing import List, Set, Tuple

from petrinet_sim.core.net_graph import NetGraph
from petrinet_sim.models.net_model import PetriNetModel, Place, Transition


def validate_model(model: PetriNetModel) -> Tuple[bool, List[str], List[str]]:
    """
    验证网络模型

    检查内容:
    - 节点ID、弧ID唯一性
    - 弧端点存在且只连接库所与变迁
    - 在途变迁的激活时刻
    - 孤立节点、并行弧（警告）

    Args:
        model: Petri网模型

    Returns:
        (是否有效, 错误列表, 警告列表)
    """
    errors = []
    warnings = []

    # 1. 检查节点ID唯一性
    seen_ids: Set[str] = set()
    for node in model.nodes:
        if node.id in seen_ids:
            errors.append(f"重复的节点ID: {node.id}")
        seen_ids.add(node.id)

    # 2. 检查弧ID唯一性
    seen_arcs: Set[str] = set()
    for arc in model.arcs:
        if arc.id in seen_arcs:
            errors.append(f"重复的弧ID: {arc.id}")
        seen_arcs.add(arc.id)

    # 3. 弧端点与方向
    graph = NetGraph(model)
    _, structure_errors = graph.validate()
    errors.extend(structure_errors)

    # 4. 在途变迁必须有激活时刻
    for transition in model.transitions:
        if transition.in_flight and transition.activation_time is None:
            errors.append(f"变迁'{transition.id}'处于等待状态但没有激活时刻")

    # 5. 孤立节点
    for node_id in graph.get_isolated_nodes():
        warnings.append(f"节点'{node_id}'没有连接任何弧")

    # 6. 并行弧
    for source, target, keys in graph.get_parallel_arcs():
        warnings.append(
            f"{source} -> {target} 之间存在多条弧: {', '.join(keys)}，使能判断和发射时权重累加"
        )

    is_valid = len(errors) == 0
    return is_valid, errors, warnings


def validate_connection(
    model: PetriNetModel,
    source_id: str,
    target_id: str
) -> Tuple[bool, str]:
    """
    验证能否在两个节点之间新建弧

    Args:
        model: Petri网模型
        source_id: 源节点ID
        target_id: 目标节点ID

    Returns:
        (是否允许, 验证消息)
    """
    source = model.get_node(source_id)
    target = model.get_node(target_id)

    if source is None:
        return False, f"源节点'{source_id}'不存在"
    if target is None:
        return False, f"目标节点'{target_id}'不存在"

    if isinstance(source, Place) and isinstance(target, Place):
        return False, "不能连接两个库所"
    if isinstance(source, Transition) and isinstance(target, Transition):
        return False, "不能连接两个变迁"

    if model.find_arc(source_id, target_id) is not None:
        return False, f"弧 {source_id} -> {target_id} 已存在"

    return True, "验证通过"


def check_numbering(model: PetriNetModel) -> List[str]:
    """
    检查显示序号是否连续（库所、变迁各自 0..N-1）

    Args:
        model: Petri网模型

    Returns:
        问题描述列表，为空表示序号正确
    """
    problems = []
    for name, nodes in (("库所", model.places), ("变迁", model.transitions)):
        numbers = [n.number for n in nodes]
        if numbers != list(range(len(nodes))):
            problems.append(f"{name}序号不连续: {numbers}")
    return problems

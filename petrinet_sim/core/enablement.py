"""
使能判定
纯函数：判断变迁是否使能，并计算原子取走托肯的方案

规则:
- 对每个输入库所，托肯数 ≥ 该库所所有输入弧的权重之和
- 没有输入弧的变迁总是使能
"""

from typing import Dict, List, Optional

from petrinet_sim.models.net_model import PetriNetModel, Place, Transition


def is_enabled(transition_id: str, model: PetriNetModel) -> bool:
    """
    判断变迁是否使能

    Args:
        transition_id: 变迁ID
        model: Petri网模型

    Returns:
        是否使能（ID不存在或不是变迁时返回False）
    """
    transition = model.get_node(transition_id)
    if not isinstance(transition, Transition):
        return False

    node_map = model.get_node_map()
    # 同一库所的并行输入弧按权重累加
    required: Dict[str, int] = {}
    for arc in model.arcs:
        if arc.target != transition_id:
            continue
        if not isinstance(node_map.get(arc.source), Place):
            continue
        required[arc.source] = required.get(arc.source, 0) + arc.weight

    for place_id, amount in required.items():
        if node_map[place_id].tokens < amount:
            return False
    return True


def enabled_transitions(model: PetriNetModel) -> List[str]:
    """
    获取当前所有使能的变迁

    Args:
        model: Petri网模型

    Returns:
        使能变迁ID列表（按模型顺序）
    """
    return [t.id for t in model.transitions if is_enabled(t.id, model)]


def withdrawal_plan(
    transition_id: str,
    model: PetriNetModel
) -> Optional[Dict[str, int]]:
    """
    计算激活变迁时要从各输入库所取走的托肯数

    同一库所有多条并行输入弧时按权重累加，
    任何库所托肯不足则整体返回None（不允许部分取走）

    Args:
        transition_id: 变迁ID
        model: Petri网模型

    Returns:
        库所ID -> 取走数量，不可行时返回None
    """
    if not is_enabled(transition_id, model):
        return None

    plan: Dict[str, int] = {}
    for arc in model.input_arcs(transition_id):
        plan[arc.source] = plan.get(arc.source, 0) + arc.weight

    for place_id, amount in plan.items():
        place = model.get_place(place_id)
        if place is None or place.tokens < amount:
            return None
    return plan


def deposit_plan(transition_id: str, model: PetriNetModel) -> Dict[str, int]:
    """
    计算完成变迁时向各输出库所投放的托肯数

    Args:
        transition_id: 变迁ID
        model: Petri网模型

    Returns:
        库所ID -> 投放数量
    """
    plan: Dict[str, int] = {}
    for arc in model.output_arcs(transition_id):
        plan[arc.target] = plan.get(arc.target, 0) + arc.weight
    return plan

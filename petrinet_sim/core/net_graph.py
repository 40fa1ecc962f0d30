"""
网络拓扑图
使用NetworkX构建和查询Petri网的二部有向图

功能:
- 从网络模型构建有向多重图（允许并行弧）
- 输入/输出库所查询
- 结构检查（悬空弧、同类节点相连、孤立节点）
"""

from typing import Dict, List, Tuple, Union
import networkx as nx

from petrinet_sim.models.enums import NodeKind
from petrinet_sim.models.net_model import Arc, PetriNetModel, Place, Transition


class NetGraph:
    """
    网络拓扑图

    使用NetworkX MultiDiGraph管理节点和弧，
    节点属性 kind 区分库所与变迁，边的 key 为弧ID
    """

    def __init__(self, model: PetriNetModel):
        """
        初始化拓扑图

        Args:
            model: Petri网模型
        """
        self.model = model
        self.graph = nx.MultiDiGraph()
        self.node_map: Dict[str, Union[Place, Transition]] = {}
        self.dangling_arcs: List[Arc] = []

        self._build_graph(model)

    def _build_graph(self, model: PetriNetModel):
        """
        从网络模型构建图

        Args:
            model: Petri网模型
        """
        for node in model.nodes:
            self.graph.add_node(node.id, kind=node.kind, data=node)
            self.node_map[node.id] = node

        for arc in model.arcs:
            # 端点不存在的弧不进图，单独记录
            if arc.source not in self.node_map or arc.target not in self.node_map:
                self.dangling_arcs.append(arc)
                continue
            self.graph.add_edge(
                arc.source,
                arc.target,
                key=arc.id,
                weight=arc.weight,
                data=arc
            )

    def validate(self) -> Tuple[bool, List[str]]:
        """
        验证网络结构

        检查:
        - 弧的端点存在
        - 弧只连接库所与变迁（二部方向）

        Returns:
            (是否有效, 错误列表)
        """
        errors = []

        for arc in self.dangling_arcs:
            missing = [
                end for end in (arc.source, arc.target)
                if end not in self.node_map
            ]
            errors.append(f"弧 '{arc.id}' 引用了不存在的节点: {', '.join(missing)}")

        for source, target, key in self.graph.edges(keys=True):
            source_kind = self.graph.nodes[source]["kind"]
            target_kind = self.graph.nodes[target]["kind"]
            if source_kind == target_kind:
                kind_name = "库所" if source_kind == NodeKind.PLACE else "变迁"
                errors.append(
                    f"弧 '{key}' 连接了两个{kind_name}: {source} -> {target}"
                )

        return len(errors) == 0, errors

    def get_places(self) -> List[str]:
        """获取所有库所ID"""
        return [n for n, kind in self.graph.nodes(data="kind") if kind == NodeKind.PLACE]

    def get_transitions(self) -> List[str]:
        """获取所有变迁ID"""
        return [
            n for n, kind in self.graph.nodes(data="kind")
            if kind == NodeKind.TRANSITION
        ]

    def get_input_places(self, transition_id: str) -> List[Tuple[str, int]]:
        """
        获取变迁的输入库所

        Args:
            transition_id: 变迁ID

        Returns:
            (库所ID, 弧权重) 列表
        """
        if transition_id not in self.graph:
            return []
        return [
            (source, weight)
            for source, _, weight in self.graph.in_edges(transition_id, data="weight")
            if self.graph.nodes[source]["kind"] == NodeKind.PLACE
        ]

    def get_output_places(self, transition_id: str) -> List[Tuple[str, int]]:
        """
        获取变迁的输出库所

        Args:
            transition_id: 变迁ID

        Returns:
            (库所ID, 弧权重) 列表
        """
        if transition_id not in self.graph:
            return []
        return [
            (target, weight)
            for _, target, weight in self.graph.out_edges(transition_id, data="weight")
            if self.graph.nodes[target]["kind"] == NodeKind.PLACE
        ]

    def get_incident_arc_ids(self, node_id: str) -> List[str]:
        """获取与节点相连的所有弧ID"""
        if node_id not in self.graph:
            return []
        in_keys = [key for _, _, key in self.graph.in_edges(node_id, keys=True)]
        out_keys = [key for _, _, key in self.graph.out_edges(node_id, keys=True)]
        # 自环同时出现在入边和出边中
        return list(dict.fromkeys(in_keys + out_keys))

    def get_isolated_nodes(self) -> List[str]:
        """获取没有任何弧相连的节点"""
        return list(nx.isolates(self.graph))

    def get_source_transitions(self) -> List[str]:
        """获取没有输入库所的变迁（总是使能）"""
        return [t for t in self.get_transitions() if not self.get_input_places(t)]

    def get_sink_transitions(self) -> List[str]:
        """获取没有输出库所的变迁（只消耗托肯）"""
        return [t for t in self.get_transitions() if not self.get_output_places(t)]

    def get_parallel_arcs(self) -> List[Tuple[str, str, List[str]]]:
        """
        获取并行弧（同一方向连接同一对节点的多条弧）

        Returns:
            (源节点, 目标节点, 弧ID列表) 列表
        """
        parallel = []
        for source, target in set(self.graph.edges()):
            keys = list(self.graph[source][target].keys())
            if len(keys) > 1:
                parallel.append((source, target, keys))
        return sorted(parallel)

    def get_component_count(self) -> int:
        """获取弱连通分量数量"""
        if self.graph.number_of_nodes() == 0:
            return 0
        return nx.number_weakly_connected_components(self.graph)

    def get_node_count(self) -> int:
        """获取节点数量"""
        return self.graph.number_of_nodes()

    def get_arc_count(self) -> int:
        """获取图中弧数量（不含悬空弧）"""
        return self.graph.number_of_edges()

"""
Petri网模型
定义库所、变迁、弧以及完整网络模型

模型:
- NodePosition: 画布坐标
- Place: 库所（保存托肯）
- Transition: 变迁（带延时和执行状态）
- Arc: 加权有向弧（库所 ↔ 变迁）
- PetriNetModel: 完整网络（有序节点列表 + 弧列表）
"""

from typing import Annotated, Dict, List, Literal, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from petrinet_sim.models.enums import LabelPosition, NodeKind, TransitionPhase


class NetBaseModel(BaseModel):
    """
    网络元素基类

    Python属性使用 snake_case，文档字段使用 camelCase（labelPosition、canFire 等）
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    @field_validator("label", mode="before", check_fields=False)
    @classmethod
    def _none_label_to_empty(cls, value):
        return "" if value is None else value


class NodePosition(BaseModel):
    """画布坐标"""

    x: float = Field(default=0.0, description="X坐标")
    y: float = Field(default=0.0, description="Y坐标")


class Place(NetBaseModel):
    """
    库所模型

    Attributes:
        id: 唯一ID（如 position-0）
        kind: 固定为 position
        position: 画布坐标
        tokens: 托肯数（≥0）
        label: 标签
        label_position: 标签位置
        number: 库所内的显示序号（从0开始、连续）
    """

    id: str = Field(description="唯一节点ID")
    kind: Literal["position"] = Field(
        default="position",
        description="节点类型"
    )
    position: NodePosition = Field(
        default_factory=NodePosition,
        description="画布坐标"
    )
    tokens: int = Field(
        default=0,
        ge=0,
        description="托肯数"
    )
    label: str = Field(
        default="",
        description="标签"
    )
    label_position: LabelPosition = Field(
        default=LabelPosition.TOP,
        description="标签位置"
    )
    number: int = Field(
        default=0,
        ge=0,
        description="显示序号（库所之间连续编号）"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "position-0",
                "kind": "position",
                "position": {"x": 100, "y": 100},
                "tokens": 2,
                "label": "缓冲区",
                "labelPosition": "top",
                "number": 0
            }
        }
    )


class Transition(NetBaseModel):
    """
    变迁模型

    Attributes:
        id: 唯一ID（如 transition-1）
        kind: 固定为 transition
        position: 画布坐标
        delay: 延时（时钟拍数，≥0）
        label: 标签
        label_position: 标签位置
        number: 变迁内的显示序号
        can_fire: 使能标志（由引擎重新计算）
        waiting: 是否处于等待阶段
        tokens_removed: 输入托肯是否已取走
        activation_time: 激活时刻（时钟值）
        firing: 刚完成发射的短暂高亮标志
    """

    id: str = Field(description="唯一节点ID")
    kind: Literal["transition"] = Field(
        default="transition",
        description="节点类型"
    )
    position: NodePosition = Field(
        default_factory=NodePosition,
        description="画布坐标"
    )
    delay: int = Field(
        default=0,
        ge=0,
        description="延时（时钟拍数）"
    )
    label: str = Field(
        default="",
        description="标签"
    )
    label_position: LabelPosition = Field(
        default=LabelPosition.TOP,
        description="标签位置"
    )
    number: int = Field(
        default=0,
        ge=0,
        description="显示序号（变迁之间连续编号）"
    )

    # 执行状态
    can_fire: bool = Field(default=False, description="是否使能")
    waiting: bool = Field(default=False, description="是否等待中")
    tokens_removed: bool = Field(default=False, description="输入托肯是否已取走")
    activation_time: Optional[int] = Field(
        default=None,
        ge=0,
        description="激活时刻"
    )
    firing: bool = Field(default=False, description="发射高亮标志")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "transition-1",
                "kind": "transition",
                "position": {"x": 250, "y": 100},
                "delay": 3,
                "label": "加工",
                "labelPosition": "top",
                "number": 0,
                "canFire": False,
                "waiting": False,
                "tokensRemoved": False,
                "activationTime": None,
                "firing": False
            }
        }
    )

    @property
    def in_flight(self) -> bool:
        """已取走输入托肯、尚未投放输出托肯"""
        return self.waiting and self.tokens_removed

    @property
    def phase(self) -> TransitionPhase:
        """
        当前生命周期阶段

        Returns:
            TransitionPhase
        """
        if self.in_flight:
            return TransitionPhase.WAITING
        if self.firing:
            return TransitionPhase.FIRED
        if self.can_fire:
            return TransitionPhase.ENABLED
        return TransitionPhase.IDLE

    def is_due(self, now: int) -> bool:
        """
        判断等待是否已结束

        Args:
            now: 当前时钟值

        Returns:
            是否满足 now >= activation_time + delay
        """
        if not self.in_flight or self.activation_time is None:
            return False
        return now >= self.activation_time + self.delay

    def clear_execution_state(self):
        """清除等待相关的执行状态"""
        self.waiting = False
        self.tokens_removed = False
        self.activation_time = None


NetNode = Annotated[Union[Place, Transition], Field(discriminator="kind")]


class Arc(NetBaseModel):
    """
    弧模型

    只允许 库所→变迁 或 变迁→库所 两个方向

    Attributes:
        id: 唯一ID
        source: 源节点ID
        target: 目标节点ID
        weight: 权重（每次发射消耗/产生的托肯数，≥1）
        label: 标签
        label_position: 标签位置
    """

    id: str = Field(description="唯一弧ID")
    source: str = Field(description="源节点ID")
    target: str = Field(description="目标节点ID")
    weight: int = Field(
        default=1,
        ge=1,
        description="权重"
    )
    label: str = Field(
        default="",
        description="标签"
    )
    label_position: LabelPosition = Field(
        default=LabelPosition.TOP,
        description="标签位置"
    )

    @field_validator("weight", mode="before")
    @classmethod
    def _normalize_weight(cls, value):
        # 缺失、非数字、0或负数一律按1处理
        if value is None or isinstance(value, bool):
            return 1
        try:
            weight = int(value)
        except (TypeError, ValueError):
            return 1
        return weight if weight >= 1 else 1

    def connects(self, node_id: str) -> bool:
        """弧是否与指定节点相连"""
        return self.source == node_id or self.target == node_id


class PetriNetModel(BaseModel):
    """
    Petri网模型

    节点按文档顺序保存在同一个列表中（库所与变迁混排），
    显示序号按该顺序在各自类型内重新计算

    Attributes:
        nodes: 节点列表（Place | Transition）
        arcs: 弧列表
    """

    nodes: List[NetNode] = Field(
        default_factory=list,
        description="节点列表"
    )
    arcs: List[Arc] = Field(
        default_factory=list,
        description="弧列表"
    )

    @property
    def places(self) -> List[Place]:
        """所有库所（保持顺序）"""
        return [n for n in self.nodes if isinstance(n, Place)]

    @property
    def transitions(self) -> List[Transition]:
        """所有变迁（保持顺序）"""
        return [n for n in self.nodes if isinstance(n, Transition)]

    def get_node_map(self) -> Dict[str, Union[Place, Transition]]:
        """
        获取节点映射字典

        Returns:
            节点ID到节点的映射
        """
        return {node.id: node for node in self.nodes}

    def get_node(self, node_id: str) -> Optional[Union[Place, Transition]]:
        """根据ID获取节点"""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_place(self, node_id: str) -> Optional[Place]:
        """根据ID获取库所，不是库所返回None"""
        node = self.get_node(node_id)
        return node if isinstance(node, Place) else None

    def get_transition(self, node_id: str) -> Optional[Transition]:
        """根据ID获取变迁，不是变迁返回None"""
        node = self.get_node(node_id)
        return node if isinstance(node, Transition) else None

    def get_arc(self, arc_id: str) -> Optional[Arc]:
        """根据ID获取弧"""
        for arc in self.arcs:
            if arc.id == arc_id:
                return arc
        return None

    def find_arc(self, source: str, target: str) -> Optional[Arc]:
        """
        查找连接两个节点的弧

        Args:
            source: 源节点ID
            target: 目标节点ID

        Returns:
            第一条匹配的弧或None
        """
        for arc in self.arcs:
            if arc.source == source and arc.target == target:
                return arc
        return None

    def get_node_ids(self) -> List[str]:
        """获取所有节点ID"""
        return [n.id for n in self.nodes]

    def input_arcs(self, transition_id: str) -> List[Arc]:
        """
        获取变迁的输入弧（库所 → 变迁）

        Args:
            transition_id: 变迁ID

        Returns:
            输入弧列表（按弧列表顺序）
        """
        node_map = self.get_node_map()
        return [
            arc for arc in self.arcs
            if arc.target == transition_id
            and isinstance(node_map.get(arc.source), Place)
        ]

    def output_arcs(self, transition_id: str) -> List[Arc]:
        """
        获取变迁的输出弧（变迁 → 库所）

        Args:
            transition_id: 变迁ID

        Returns:
            输出弧列表（按弧列表顺序）
        """
        node_map = self.get_node_map()
        return [
            arc for arc in self.arcs
            if arc.source == transition_id
            and isinstance(node_map.get(arc.target), Place)
        ]

    def incident_arcs(self, node_id: str) -> List[Arc]:
        """获取与节点相连的所有弧"""
        return [arc for arc in self.arcs if arc.connects(node_id)]

    def add_node(self, node: Union[Place, Transition]) -> bool:
        """
        添加节点

        Args:
            node: 要添加的节点

        Returns:
            是否添加成功（ID不重复）
        """
        if self.get_node(node.id) is not None:
            return False
        self.nodes.append(node)
        return True

    def remove_node(self, node_id: str) -> bool:
        """
        移除节点及其相连的弧

        Args:
            node_id: 节点ID

        Returns:
            是否移除成功
        """
        for i, node in enumerate(self.nodes):
            if node.id == node_id:
                self.nodes.pop(i)
                self.arcs = [a for a in self.arcs if not a.connects(node_id)]
                return True
        return False

    def add_arc(self, arc: Arc) -> bool:
        """添加弧（ID不重复）"""
        if self.get_arc(arc.id) is not None:
            return False
        self.arcs.append(arc)
        return True

    def remove_arc(self, arc_id: str) -> bool:
        """移除弧"""
        for i, arc in enumerate(self.arcs):
            if arc.id == arc_id:
                self.arcs.pop(i)
                return True
        return False

    def renumber(self) -> bool:
        """
        重新计算显示序号

        库所和变迁各自按当前顺序编号为 0..N-1

        Returns:
            是否有序号发生变化
        """
        counters = {NodeKind.PLACE.value: 0, NodeKind.TRANSITION.value: 0}
        changed = False
        for node in self.nodes:
            number = counters[node.kind]
            counters[node.kind] += 1
            if node.number != number:
                node.number = number
                changed = True
        return changed

    def get_marking(self) -> np.ndarray:
        """
        获取当前标识（各库所托肯数组成的向量，按库所顺序）

        Returns:
            整数数组
        """
        return np.array([p.tokens for p in self.places], dtype=np.int64)

    def get_marking_map(self) -> Dict[str, int]:
        """获取库所ID到托肯数的映射"""
        return {p.id: p.tokens for p in self.places}

    def clear(self):
        """清空所有节点和弧"""
        self.nodes = []
        self.arcs = []

    def deep_copy(self) -> "PetriNetModel":
        """结构独立的深拷贝"""
        return self.model_copy(deep=True)

"""
Petri网引擎主控
面向界面层的唯一入口，协调模型、状态机、调度器、快照和导入导出

功能:
- 节点/弧的增删改（库所↔变迁方向约束、级联删除、连续编号）
- 变迁激活（取走托肯），延时到期后自动完成（投放托肯）
- 离散时钟：SimPy环境中的时钟进程每拍驱动一次完成调度
- 初始状态保存/恢复、清空画布
- JSON导入导出

设计要点:
- 单线程：每个操作执行完毕才处理下一个外部事件
- 每个变更操作是一批：先应用变更，批结束时统一执行一次完成扫描和使能重算，
  嵌套调用只在最外层结算
- 对外接口不抛出异常，失败返回 False/None
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional, Union

import numpy as np
import simpy
from pydantic import ValidationError

from petrinet_sim.models.config_model import EngineConfig
from petrinet_sim.models.enums import LabelPosition, NodeKind
from petrinet_sim.models.net_model import (
    Arc,
    NodePosition,
    PetriNetModel,
    Place,
    Transition,
)
from petrinet_sim.core import enablement
from petrinet_sim.core.event_collector import EventCollector
from petrinet_sim.core.firing import FiringStateMachine
from petrinet_sim.core.scheduler import CompletionScheduler
from petrinet_sim.core.snapshot import SnapshotManager
from petrinet_sim.utils import serialization
from petrinet_sim.utils.serialization import ImportResult
from petrinet_sim.utils.statistics import summarize_model
from petrinet_sim.utils.validators import validate_connection

logger = logging.getLogger(__name__)

# 界面可编辑的字段（执行状态和序号由引擎维护）
PLACE_EDITABLE_FIELDS = {"tokens", "label", "label_position", "position"}
TRANSITION_EDITABLE_FIELDS = {"delay", "label", "label_position", "position"}
ARC_EDITABLE_FIELDS = {"weight", "label", "label_position"}

ARC_ID_PREFIX = "xy-edge__"


def _resolve_fields(model_cls, data: Dict[str, Any], editable: set) -> Optional[Dict[str, Any]]:
    """
    把 camelCase 或 snake_case 的键映射为字段名

    Returns:
        字段名 -> 值；有不可编辑的键时返回None
    """
    lookup = {}
    for name, info in model_cls.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name

    resolved = {}
    for key, value in data.items():
        name = lookup.get(key)
        if name is None or name not in editable:
            return None
        resolved[name] = value
    return resolved


class PetriNetEngine:
    """
    Petri网引擎

    负责:
    - 维护当前模型和全局离散时钟
    - 把界面操作转换为模型变更
    - 每次变更后结算（完成到期变迁、重算使能标志）
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        wall_clock: Callable[[], float] = time.monotonic
    ):
        """
        初始化引擎

        Args:
            config: 引擎配置
            wall_clock: 真实时间函数（秒），用于发射高亮过期
        """
        self.config = config or EngineConfig()
        self._model = PetriNetModel()
        self.node_id_counter = 0

        self.event_collector = EventCollector(
            max_events=self.config.max_events,
            enabled=self.config.record_events
        )
        self.state_machine = FiringStateMachine(
            self._model,
            self._now,
            self.event_collector,
            self.config,
            wall_clock
        )
        self.scheduler = CompletionScheduler(self.state_machine)
        self.snapshots = SnapshotManager()

        # 时钟（在 _init_clock 中初始化）
        self.env: Optional[simpy.Environment] = None
        self._tick: Optional[simpy.Event] = None
        self._batch_depth = 0

        self._init_clock()

    # ========== 时钟 ==========

    def _init_clock(self):
        """创建新的SimPy环境并启动时钟进程（时间从0开始）"""
        self.env = simpy.Environment()
        self._tick = None
        self.env.process(self._clock_process())
        # 处理进程的初始化事件，生成第一拍
        self.env.step()

    def _clock_process(self) -> Generator:
        """
        时钟进程

        每拍结束时执行一次结算
        """
        while True:
            self._tick = self.env.timeout(1)
            yield self._tick
            self._settle()

    def _now(self) -> int:
        return int(self.env.now)

    @property
    def time(self) -> int:
        """当前时钟值"""
        return self._now()

    def advance_clock(self, ticks: int = 1) -> int:
        """
        推进时钟

        Args:
            ticks: 推进的拍数

        Returns:
            推进后的时钟值
        """
        for _ in range(max(0, ticks)):
            self.env.run(until=self._tick)
        return self.time

    def reset_clock(self) -> bool:
        """
        时钟归零

        在途变迁保留原激活时刻

        Returns:
            是否成功
        """
        with self._batch():
            self._init_clock()
        return True

    # ========== 批处理与结算 ==========

    @contextmanager
    def _batch(self):
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._settle()

    def _settle(self):
        """结算：清除过期高亮、完成到期变迁、重算使能标志"""
        if self._batch_depth > 0:
            return
        self._batch_depth += 1
        try:
            self.state_machine.expire_pulses()
            self.scheduler.run_pass(self._now())
            self.state_machine.refresh_enablement()
        finally:
            self._batch_depth -= 1

    @property
    def model(self) -> PetriNetModel:
        """
        当前模型

        每次读取前清除已过期的发射高亮，空闲时 firing 标志也会按时消失
        """
        self.state_machine.expire_pulses()
        return self._model

    def _replace_model(self, model: PetriNetModel):
        self._model = model
        self.state_machine.bind(model)

    # ========== 节点 ==========

    def create_node(
        self,
        kind: Union[NodeKind, str],
        position: Optional[Union[NodePosition, Dict[str, float]]] = None
    ) -> Optional[Union[Place, Transition]]:
        """
        新建节点

        Args:
            kind: 节点类型（position/transition）
            position: 画布坐标

        Returns:
            新节点，类型或坐标无效时返回None
        """
        try:
            kind = NodeKind(kind)
            if position is None:
                position = NodePosition()
            elif not isinstance(position, NodePosition):
                position = NodePosition.model_validate(position)
        except (ValueError, ValidationError):
            logger.debug("新建节点失败，参数无效: %s %s", kind, position)
            return None

        with self._batch():
            node_id = self._allocate_node_id(kind)
            if kind == NodeKind.PLACE:
                node = Place(id=node_id, position=position)
            else:
                node = Transition(id=node_id, position=position)
            self.model.add_node(node)
            self.model.renumber()
        return node

    def _allocate_node_id(self, kind: NodeKind) -> str:
        while True:
            node_id = f"{kind.value}-{self.node_id_counter}"
            self.node_id_counter += 1
            if self.model.get_node(node_id) is None:
                return node_id

    def delete_node(self, node_id: str) -> bool:
        """
        删除节点及其相连的弧

        Args:
            node_id: 节点ID

        Returns:
            是否删除成功
        """
        with self._batch():
            removed = self.model.remove_node(node_id)
            if removed:
                self.model.renumber()
        return removed

    def delete_nodes(self, node_ids: Iterable[str]) -> int:
        """
        批量删除节点（界面多选删除）

        Args:
            node_ids: 节点ID列表

        Returns:
            删除的节点数
        """
        count = 0
        with self._batch():
            for node_id in node_ids:
                if self.model.remove_node(node_id):
                    count += 1
            self.model.renumber()
        return count

    def update_node_data(self, node_id: str, data: Dict[str, Any]) -> bool:
        """
        修改节点数据

        库所可改 tokens/label/labelPosition/position，
        变迁可改 delay/label/labelPosition/position；全部有效才写入

        Args:
            node_id: 节点ID
            data: 要修改的字段

        Returns:
            是否修改成功
        """
        node = self.model.get_node(node_id)
        if node is None:
            return False

        editable = PLACE_EDITABLE_FIELDS if isinstance(node, Place) else TRANSITION_EDITABLE_FIELDS
        updates = _resolve_fields(type(node), data, editable)
        if updates is None:
            logger.debug("修改节点失败，包含不可编辑字段: %s %s", node_id, list(data))
            return False

        try:
            candidate = type(node).model_validate({**node.model_dump(), **updates})
        except ValidationError as e:
            logger.debug("修改节点失败，字段无效: %s %s", node_id, e)
            return False

        with self._batch():
            for name in updates:
                setattr(node, name, getattr(candidate, name))
        return True

    def get_node(self, node_id: str) -> Optional[Union[Place, Transition]]:
        """根据ID获取节点"""
        return self.model.get_node(node_id)

    # ========== 弧 ==========

    def create_arc(self, source_id: str, target_id: str) -> Optional[Arc]:
        """
        新建弧（权重1）

        Args:
            source_id: 源节点ID
            target_id: 目标节点ID

        Returns:
            新弧；方向无效、节点不存在或弧已存在时返回None
        """
        valid, msg = validate_connection(self.model, source_id, target_id)
        if not valid:
            logger.info("新建弧失败: %s", msg)
            return None

        arc_id = f"{ARC_ID_PREFIX}{source_id}-{target_id}"
        suffix = 1
        while self.model.get_arc(arc_id) is not None:
            arc_id = f"{ARC_ID_PREFIX}{source_id}-{target_id}-{suffix}"
            suffix += 1

        arc = Arc(
            id=arc_id,
            source=source_id,
            target=target_id,
            weight=1,
            label="",
            label_position=LabelPosition.TOP
        )
        with self._batch():
            self.model.add_arc(arc)
        return arc

    def update_arc_data(self, arc_id: str, data: Dict[str, Any]) -> bool:
        """
        修改弧数据（weight/label/labelPosition）

        权重小于1时按1处理

        Args:
            arc_id: 弧ID
            data: 要修改的字段

        Returns:
            是否修改成功
        """
        arc = self.model.get_arc(arc_id)
        if arc is None:
            return False

        updates = _resolve_fields(Arc, data, ARC_EDITABLE_FIELDS)
        if updates is None:
            logger.debug("修改弧失败，包含不可编辑字段: %s %s", arc_id, list(data))
            return False

        try:
            candidate = Arc.model_validate({**arc.model_dump(), **updates})
        except ValidationError as e:
            logger.debug("修改弧失败，字段无效: %s %s", arc_id, e)
            return False

        with self._batch():
            for name in updates:
                setattr(arc, name, getattr(candidate, name))
        return True

    def delete_arc(self, arc_id: str) -> bool:
        """
        删除弧

        Args:
            arc_id: 弧ID

        Returns:
            是否删除成功
        """
        with self._batch():
            removed = self.model.remove_arc(arc_id)
        return removed

    def delete_arcs(self, arc_ids: Iterable[str]) -> int:
        """批量删除弧，返回删除数量"""
        count = 0
        with self._batch():
            for arc_id in arc_ids:
                if self.model.remove_arc(arc_id):
                    count += 1
        return count

    def get_arc(self, arc_id: str) -> Optional[Arc]:
        """根据ID获取弧"""
        return self.model.get_arc(arc_id)

    # ========== 发射 ==========

    def is_enabled(self, transition_id: str) -> bool:
        """判断变迁当前是否使能"""
        return enablement.is_enabled(transition_id, self.model)

    def start_transition(self, transition_id: str) -> bool:
        """
        激活变迁

        使能时立即取走输入托肯；延时为0时同时投放输出托肯，
        否则等待时钟推进到 激活时刻 + 延时

        Args:
            transition_id: 变迁ID

        Returns:
            是否激活成功
        """
        with self._batch():
            started = self.state_machine.start(transition_id)
        return started

    def get_pending_transitions(self) -> Dict[str, int]:
        """获取在途变迁的剩余等待拍数"""
        return self.scheduler.get_pending(self.time)

    # ========== 快照 ==========

    @property
    def is_initial_state_saved(self) -> bool:
        """是否已保存初始状态"""
        return self.snapshots.has_snapshot

    def save_initial_state(self) -> bool:
        """
        保存初始状态

        Returns:
            是否保存成功
        """
        return self.snapshots.save(self.model, self.time)

    def reset_to_initial_state(self) -> bool:
        """
        恢复初始状态，时钟归零

        Returns:
            是否恢复成功（未保存过时返回False且模型不变）
        """
        restored = self.snapshots.restore()
        if restored is None:
            return False

        with self._batch():
            self._replace_model(restored)
            self._init_clock()
        return True

    def reset_canvas(self) -> bool:
        """
        清空画布：删除所有节点和弧，ID计数和时钟归零，快照失效

        Returns:
            是否成功
        """
        with self._batch():
            self._replace_model(PetriNetModel())
            self.node_id_counter = 0
            self.snapshots.clear()
            self.event_collector.clear()
            self._init_clock()
        return True

    # ========== 导入导出 ==========

    def export_model(self) -> str:
        """导出当前模型为JSON字符串"""
        return serialization.export_model(self.model, self.config.export_indent)

    def export_model_file(self, path: str) -> bool:
        """导出当前模型到文件"""
        return serialization.export_model_file(self.model, path, self.config.export_indent)

    def import_model_detailed(self, text: str) -> ImportResult:
        """
        导入JSON并返回详细结果

        失败时当前模型保持不变

        Args:
            text: JSON字符串

        Returns:
            ImportResult导入结果
        """
        result = serialization.import_model(text)
        self._apply_import(result)
        return result

    def import_model(self, text: str) -> bool:
        """
        导入JSON

        Args:
            text: JSON字符串

        Returns:
            是否导入成功
        """
        return self.import_model_detailed(text).success

    def import_model_file(self, path: str) -> ImportResult:
        """从文件导入"""
        result = serialization.import_model_file(path)
        self._apply_import(result)
        return result

    def _apply_import(self, result: ImportResult):
        if not result.success:
            return
        with self._batch():
            self._replace_model(result.model)
            self.node_id_counter = result.next_node_index
        logger.info(
            "导入 %d 个节点、%d 条弧", result.node_count, result.arc_count
        )

    # ========== 查询 ==========

    def get_marking(self) -> np.ndarray:
        """获取当前标识"""
        return self.model.get_marking()

    @property
    def events(self) -> List:
        """已记录的发射事件"""
        return self.event_collector.get_all_events()

    def get_summary(self) -> Dict[str, Any]:
        """获取当前状态汇总"""
        return summarize_model(self.model, self.time, self.event_collector)

"""
核心引擎模块包
包含Petri网引擎的核心组件

模块说明:
- petri_engine.py: 引擎主控（SimPy离散时钟）
- enablement.py: 使能判断与托肯取放计划
- firing.py: 变迁发射状态机
- scheduler.py: 到期完成调度器
- snapshot.py: 初始状态快照
- net_graph.py: 网络拓扑图（NetworkX）
- event_collector.py: 发射事件收集器
"""

from petrinet_sim.core.enablement import (
    is_enabled,
    enabled_transitions,
    withdrawal_plan,
    deposit_plan,
)
from petrinet_sim.core.event_collector import EventCollector
from petrinet_sim.core.net_graph import NetGraph
from petrinet_sim.core.firing import FiringStateMachine
from petrinet_sim.core.scheduler import CompletionScheduler
from petrinet_sim.core.snapshot import NetSnapshot, SnapshotManager
from petrinet_sim.core.petri_engine import PetriNetEngine

__all__ = [
    "PetriNetEngine",
    "FiringStateMachine",
    "CompletionScheduler",
    "SnapshotManager",
    "NetSnapshot",
    "NetGraph",
    "EventCollector",
    "is_enabled",
    "enabled_transitions",
    "withdrawal_plan",
    "deposit_plan",
]

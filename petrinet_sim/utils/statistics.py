"""
统计计算工具
提供网络状态和托肯流动的统计功能

功能:
- 标识（marking）比较
- 托肯总量与守恒检查
- 网络状态汇总
"""

from typing import Any, Dict, Optional

import numpy as np

from petrinet_sim.core.enablement import enabled_transitions
from petrinet_sim.core.event_collector import EventCollector
from petrinet_sim.core.net_graph import NetGraph
from petrinet_sim.models.enums import TransitionPhase
from petrinet_sim.models.net_model import PetriNetModel


def marking_delta(before: np.ndarray, after: np.ndarray) -> np.ndarray:
    """
    计算两个标识之间的变化量

    Args:
        before: 变化前的标识
        after: 变化后的标识

    Returns:
        after - before（长度不同时抛出 ValueError）
    """
    before = np.asarray(before, dtype=np.int64)
    after = np.asarray(after, dtype=np.int64)
    if before.shape != after.shape:
        raise ValueError(f"标识长度不一致: {before.shape} vs {after.shape}")
    return after - before


def calculate_total_tokens(model: PetriNetModel) -> int:
    """
    计算所有库所的托肯总数

    Args:
        model: Petri网模型

    Returns:
        托肯总数
    """
    marking = model.get_marking()
    return int(marking.sum()) if marking.size else 0


def calculate_in_flight_tokens(model: PetriNetModel) -> int:
    """
    计算在途变迁已取走、尚未投放的托肯数

    Args:
        model: Petri网模型

    Returns:
        在途托肯数
    """
    total = 0
    for transition in model.transitions:
        if transition.in_flight:
            total += sum(arc.weight for arc in model.input_arcs(transition.id))
    return total


def calculate_phase_counts(model: PetriNetModel) -> Dict[str, int]:
    """
    统计各阶段的变迁数量

    Returns:
        阶段值 -> 数量
    """
    counts = {phase.value: 0 for phase in TransitionPhase}
    for transition in model.transitions:
        counts[transition.phase.value] += 1
    return counts


def summarize_model(
    model: PetriNetModel,
    now: int = 0,
    event_collector: Optional[EventCollector] = None
) -> Dict[str, Any]:
    """
    生成网络状态汇总

    Args:
        model: Petri网模型
        now: 当前时钟值
        event_collector: 事件收集器（可选）

    Returns:
        汇总信息字典
    """
    graph = NetGraph(model)
    marking = model.get_marking()

    waiting = {}
    for transition in model.transitions:
        if transition.in_flight and transition.activation_time is not None:
            waiting[transition.id] = max(
                0, transition.activation_time + transition.delay - now
            )

    summary = {
        "time": now,
        "place_count": len(model.places),
        "transition_count": len(model.transitions),
        "arc_count": len(model.arcs),
        "marking": marking.tolist(),
        "total_tokens": calculate_total_tokens(model),
        "in_flight_tokens": calculate_in_flight_tokens(model),
        "enabled_transitions": enabled_transitions(model),
        "waiting_transitions": waiting,
        "phase_counts": calculate_phase_counts(model),
        "isolated_nodes": graph.get_isolated_nodes(),
        "component_count": graph.get_component_count(),
    }

    if event_collector is not None:
        summary["events"] = event_collector.get_summary()

    return summary

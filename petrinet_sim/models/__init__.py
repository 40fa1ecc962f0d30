"""
数据模型包
包含引擎中使用的所有数据模型

模块说明:
- enums.py: 枚举定义（NodeKind, TransitionPhase等）
- config_model.py: 引擎配置模型
- net_model.py: 库所/变迁/弧/网络模型
- event_model.py: 发射事件模型
"""

from petrinet_sim.models.enums import (
    NodeKind,
    LabelPosition,
    TransitionPhase,
    FiringEventType,
    NODE_KIND_META,
    TRANSITION_PHASE_META,
)
from petrinet_sim.models.config_model import EngineConfig
from petrinet_sim.models.net_model import (
    NodePosition,
    Place,
    Transition,
    Arc,
    NetNode,
    PetriNetModel,
)
from petrinet_sim.models.event_model import FiringEvent

__all__ = [
    # 枚举
    "NodeKind",
    "LabelPosition",
    "TransitionPhase",
    "FiringEventType",
    "NODE_KIND_META",
    "TRANSITION_PHASE_META",
    # 配置
    "EngineConfig",
    # 网络
    "NodePosition",
    "Place",
    "Transition",
    "Arc",
    "NetNode",
    "PetriNetModel",
    # 事件
    "FiringEvent",
]

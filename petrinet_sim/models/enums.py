"""
枚举定义
包含Petri网引擎中使用的所有枚举类型

枚举类:
- NodeKind: 节点类型（库所/变迁）
- LabelPosition: 标签位置
- TransitionPhase: 变迁生命周期阶段
- FiringEventType: 发射事件类型
"""

from enum import Enum


class NodeKind(str, Enum):
    """
    节点类型枚举

    取值与导入/导出文档中节点的 type 字段一致

    Values:
        PLACE: 库所（文档中为 position）
        TRANSITION: 变迁
    """
    PLACE = "position"
    TRANSITION = "transition"


class LabelPosition(str, Enum):
    """
    标签位置枚举

    Values:
        TOP: 上方
        RIGHT: 右侧
        BOTTOM: 下方
        LEFT: 左侧
    """
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"


class TransitionPhase(str, Enum):
    """
    变迁生命周期阶段

    Idle → Enabled → Waiting → Fired → Idle

    Values:
        IDLE: 未使能或未触发
        ENABLED: 使能，尚未触发
        WAITING: 已取走输入托肯，等待延时结束
        FIRED: 已投放输出托肯（短暂的高亮阶段）
    """
    IDLE = "idle"
    ENABLED = "enabled"
    WAITING = "waiting"
    FIRED = "fired"


class FiringEventType(str, Enum):
    """
    发射事件类型枚举

    Values:
        STARTED: 取走输入托肯（激活）
        COMPLETED: 投放输出托肯（完成）
    """
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"


# ============ 节点类型元数据 ============

NODE_KIND_META = {
    NodeKind.PLACE: {
        "zh": "库所",
        "en": "Place",
        "id_prefix": "position",
        "description": "被动节点，保存非负整数个托肯"
    },
    NodeKind.TRANSITION: {
        "zh": "变迁",
        "en": "Transition",
        "id_prefix": "transition",
        "description": "主动节点，触发时把托肯从输入库所移到输出库所"
    },
}


# ============ 变迁阶段元数据 ============

TRANSITION_PHASE_META = {
    TransitionPhase.IDLE: {
        "zh": "空闲",
        "en": "Idle",
        "highlight": False
    },
    TransitionPhase.ENABLED: {
        "zh": "可发射",
        "en": "Enabled",
        "highlight": True
    },
    TransitionPhase.WAITING: {
        "zh": "等待中",
        "en": "Waiting",
        "highlight": True
    },
    TransitionPhase.FIRED: {
        "zh": "已发射",
        "en": "Fired",
        "highlight": True
    },
}


def get_node_kind_info(kind: NodeKind) -> dict:
    """
    获取节点类型的详细信息

    Args:
        kind: 节点类型枚举值

    Returns:
        包含中英文名称、ID前缀的字典
    """
    return NODE_KIND_META.get(kind, {
        "zh": "未知",
        "en": "Unknown",
        "id_prefix": "node",
        "description": ""
    })


def get_phase_info(phase: TransitionPhase) -> dict:
    """
    获取变迁阶段的详细信息

    Args:
        phase: 阶段枚举值

    Returns:
        包含中英文名称和高亮标志的字典
    """
    return TRANSITION_PHASE_META.get(phase, {
        "zh": "未知",
        "en": "Unknown",
        "highlight": False
    })

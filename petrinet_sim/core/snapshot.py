"""
快照管理器
保存/恢复网络的初始状态（库所、变迁、弧的完整深拷贝）

功能:
- 保存初始状态（执行标志原样复制）
- 恢复初始状态（返回新的深拷贝并重新编号）
- 清空画布时使快照失效
"""

from typing import Optional
from dataclasses import dataclass

from petrinet_sim.models.net_model import PetriNetModel


@dataclass
class NetSnapshot:
    """
    网络快照

    Attributes:
        model: 模型深拷贝
        taken_at: 保存时的时钟值（仅供查看，恢复时时钟总是归零）
    """
    model: PetriNetModel
    taken_at: int = 0


class SnapshotManager:
    """
    快照管理器

    同一时间只保存一个快照
    """

    def __init__(self):
        """初始化快照管理器"""
        self._snapshot: Optional[NetSnapshot] = None

    @property
    def has_snapshot(self) -> bool:
        """是否已保存初始状态"""
        return self._snapshot is not None

    @property
    def snapshot(self) -> Optional[NetSnapshot]:
        """当前快照"""
        return self._snapshot

    def save(self, model: PetriNetModel, taken_at: int = 0) -> bool:
        """
        保存初始状态

        Args:
            model: 当前模型
            taken_at: 当前时钟值

        Returns:
            是否保存成功
        """
        self._snapshot = NetSnapshot(model=model.deep_copy(), taken_at=taken_at)
        return True

    def restore(self) -> Optional[PetriNetModel]:
        """
        获取初始状态的新拷贝

        Returns:
            重新编号后的模型深拷贝，未保存过时返回None
        """
        if self._snapshot is None:
            return None
        model = self._snapshot.model.deep_copy()
        model.renumber()
        return model

    def clear(self):
        """使快照失效"""
        self._snapshot = None

"""
引擎配置模型
定义Petri网引擎的可配置参数

配置项:
- 发射高亮持续时间
- 导出JSON缩进
- 事件记录开关与容量
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field


class EngineConfig(BaseModel):
    """
    引擎配置模型

    Attributes:
        firing_pulse_ms: 发射完成后 firing 标志保持的时间（毫秒）
        export_indent: 导出JSON的缩进空格数
        record_events: 是否记录发射事件
        max_events: 事件记录上限（0表示不限制）
    """

    firing_pulse_ms: int = Field(
        default=150,
        ge=0,
        description="发射高亮持续时间（毫秒）"
    )
    export_indent: int = Field(
        default=2,
        ge=0,
        description="导出JSON缩进"
    )
    record_events: bool = Field(
        default=True,
        description="是否记录发射事件"
    )
    max_events: int = Field(
        default=10000,
        ge=0,
        description="事件记录上限（0为不限制）"
    )

    @computed_field
    @property
    def firing_pulse_seconds(self) -> float:
        """
        发射高亮持续时间（秒）

        Returns:
            firing_pulse_ms / 1000
        """
        return self.firing_pulse_ms / 1000.0

    def validate_config(self) -> tuple:
        """
        验证配置有效性

        Returns:
            (是否有效, 错误列表, 警告列表)
        """
        errors = []
        warnings = []

        if self.firing_pulse_ms > 2000:
            warnings.append(
                f"发射高亮时间 {self.firing_pulse_ms} 毫秒过长，可能掩盖连续发射"
            )

        if self.export_indent > 8:
            warnings.append(f"导出缩进 {self.export_indent} 过大")

        if self.record_events and 0 < self.max_events < 100:
            warnings.append("事件记录上限过小，早期事件会很快被丢弃")

        return len(errors) == 0, errors, warnings

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "firing_pulse_ms": 150,
                "export_indent": 2,
                "record_events": True,
                "max_events": 10000
            }
        }
    )

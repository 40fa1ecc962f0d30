"""
时间Petri网离散事件引擎

子包说明:
- models: 数据模型
- core: 引擎核心组件
- utils: 导入导出、验证、统计
"""

from petrinet_sim.core.petri_engine import PetriNetEngine
from petrinet_sim.models.config_model import EngineConfig

__version__ = "1.0.0"

__all__ = ["PetriNetEngine", "EngineConfig"]

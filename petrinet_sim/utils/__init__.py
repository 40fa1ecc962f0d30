"""
工具函数包
提供各种辅助功能

模块说明:
- serialization.py: JSON导入导出
- statistics.py: 标识与状态统计
- validators.py: 数据验证工具
"""

from petrinet_sim.utils.validators import (
    validate_model,
    validate_connection,
    check_numbering,
)

from petrinet_sim.utils.serialization import (
    export_model,
    export_model_bytes,
    export_model_file,
    import_model,
    import_model_bytes,
    import_model_file,
    model_to_document,
    document_to_model,
    next_node_index,
    ImportResult,
    EDGE_TYPE,
)

from petrinet_sim.utils.statistics import (
    marking_delta,
    calculate_total_tokens,
    calculate_in_flight_tokens,
    calculate_phase_counts,
    summarize_model,
)

__all__ = [
    # 验证
    "validate_model",
    "validate_connection",
    "check_numbering",
    # 导入导出
    "export_model",
    "export_model_bytes",
    "export_model_file",
    "import_model",
    "import_model_bytes",
    "import_model_file",
    "model_to_document",
    "document_to_model",
    "next_node_index",
    "ImportResult",
    "EDGE_TYPE",
    # 统计
    "marking_delta",
    "calculate_total_tokens",
    "calculate_in_flight_tokens",
    "calculate_phase_counts",
    "summarize_model",
]

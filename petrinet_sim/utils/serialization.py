"""
JSON导入导出工具
提供Petri网模型与JSON文档之间的转换

文档格式:
{
  "nodes": [{"id", "type": "position"|"transition", "position": {"x", "y"}, "data": {...}}],
  "edges": [{"id", "source", "target", "type": "petri", "data": {"weight", "label", "labelPosition"}}]
}

功能:
- 导出模型为JSON字符串/字节/文件
- 导入JSON（兼容缺失字段，重新编号，计算下一个节点序号）
"""

import json
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from petrinet_sim.exceptions import InvalidDocumentError
from petrinet_sim.models.enums import NodeKind
from petrinet_sim.models.net_model import (
    Arc,
    NodePosition,
    PetriNetModel,
    Place,
    Transition,
)
from petrinet_sim.utils.validators import validate_model

logger = logging.getLogger(__name__)

# 弧的类型和箭头样式（与画布组件保持一致）
EDGE_TYPE = "petri"
EDGE_MARKER_END = {"type": "arrowclosed"}

PLACE_DATA_FIELDS = ["tokens", "label", "label_position", "number"]
TRANSITION_DATA_FIELDS = [
    "firing",
    "can_fire",
    "waiting",
    "delay",
    "activation_time",
    "label",
    "label_position",
    "number",
    "tokens_removed",
]
ARC_DATA_FIELDS = ["weight", "label", "label_position"]


# ============ 文档结构 ============

class NodeDocument(BaseModel):
    """文档中的节点"""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    position: NodePosition = Field(default_factory=NodePosition)
    data: Dict[str, Any] = Field(default_factory=dict)


class EdgeDocument(BaseModel):
    """文档中的弧"""

    model_config = ConfigDict(extra="ignore")

    id: str
    source: str
    target: str
    type: Optional[str] = EDGE_TYPE
    data: Optional[Dict[str, Any]] = None


class NetDocument(BaseModel):
    """完整文档"""

    model_config = ConfigDict(extra="ignore")

    nodes: List[NodeDocument]
    edges: List[EdgeDocument]


@dataclass
class ImportResult:
    """JSON导入结果"""
    success: bool
    model: Optional[PetriNetModel] = None
    errors: List[str] = None
    warnings: List[str] = None
    next_node_index: int = 0

    def __post_init__(self):
        if self.errors is None:
            self.errors = []
        if self.warnings is None:
            self.warnings = []

    @property
    def node_count(self) -> int:
        """导入的节点数"""
        return len(self.model.nodes) if self.model else 0

    @property
    def arc_count(self) -> int:
        """导入的弧数"""
        return len(self.model.arcs) if self.model else 0


# ============ 导出 ============

def _dump_fields(item: BaseModel, fields: List[str]) -> Dict[str, Any]:
    dumped = item.model_dump(mode="json", by_alias=True, include=set(fields))
    # 保持固定的字段顺序
    ordered = {}
    for name in fields:
        alias = type(item).model_fields[name].alias or name
        if alias in dumped:
            ordered[alias] = dumped[alias]
    return ordered


def node_to_document(node) -> Dict[str, Any]:
    """
    节点转换为文档字典

    Args:
        node: 库所或变迁

    Returns:
        文档节点字典
    """
    if isinstance(node, Place):
        data = _dump_fields(node, PLACE_DATA_FIELDS)
    elif isinstance(node, Transition):
        data = _dump_fields(node, TRANSITION_DATA_FIELDS)
        # 未激活时不输出 activationTime
        if data.get("activationTime") is None:
            data.pop("activationTime", None)
    else:
        raise TypeError(f"未知节点类型: {type(node).__name__}")

    return {
        "id": node.id,
        "type": node.kind,
        "position": {"x": node.position.x, "y": node.position.y},
        "data": data,
    }


def arc_to_document(arc: Arc) -> Dict[str, Any]:
    """
    弧转换为文档字典

    Args:
        arc: 弧

    Returns:
        文档弧字典
    """
    return {
        "id": arc.id,
        "source": arc.source,
        "target": arc.target,
        "type": EDGE_TYPE,
        "markerEnd": dict(EDGE_MARKER_END),
        "data": _dump_fields(arc, ARC_DATA_FIELDS),
    }


def model_to_document(model: PetriNetModel) -> Dict[str, Any]:
    """
    模型转换为文档字典（不含时钟和快照）

    Args:
        model: Petri网模型

    Returns:
        {"nodes": [...], "edges": [...]}
    """
    return {
        "nodes": [node_to_document(n) for n in model.nodes],
        "edges": [arc_to_document(a) for a in model.arcs],
    }


def export_model(model: PetriNetModel, indent: int = 2) -> str:
    """
    导出模型为JSON字符串

    Args:
        model: Petri网模型
        indent: 缩进空格数

    Returns:
        JSON字符串
    """
    return json.dumps(model_to_document(model), indent=indent, ensure_ascii=False)


def export_model_bytes(model: PetriNetModel, indent: int = 2) -> bytes:
    """导出模型为UTF-8字节"""
    return export_model(model, indent).encode("utf-8")


def export_model_file(model: PetriNetModel, path: str, indent: int = 2) -> bool:
    """
    导出模型到文件

    Args:
        model: Petri网模型
        path: 文件路径
        indent: 缩进空格数

    Returns:
        是否写入成功
    """
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(export_model(model, indent))
    except OSError as e:
        logger.warning("导出文件失败 %s: %s", path, e)
        return False
    return True


# ============ 导入 ============

def _format_validation_error(prefix: str, error: ValidationError) -> List[str]:
    messages = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item.get("loc", ()))
        if loc:
            messages.append(f"{prefix}{loc}: {item.get('msg', '')}")
        else:
            messages.append(f"{prefix}{item.get('msg', '')}")
    return messages


def _node_index(node_id: str) -> Optional[int]:
    # "position-3" -> 3；没有数字后缀时返回None
    _, sep, suffix = node_id.rpartition("-")
    if not sep or not suffix.isdigit():
        return None
    return int(suffix)


def next_node_index(model: PetriNetModel) -> int:
    """
    计算下一个可用的节点序号（大于所有已有ID的数字后缀）

    Args:
        model: Petri网模型

    Returns:
        下一个节点序号
    """
    indices = [_node_index(n.id) for n in model.nodes]
    indices = [i for i in indices if i is not None]
    return max(indices) + 1 if indices else 0


def document_to_model(document: Any) -> PetriNetModel:
    """
    文档字典转换为模型

    Args:
        document: json.loads 的结果

    Returns:
        Petri网模型（未重新编号）

    Raises:
        InvalidDocumentError: 文档结构不符合要求
    """
    if not isinstance(document, dict):
        raise InvalidDocumentError("文档顶层必须是对象")

    try:
        net_doc = NetDocument.model_validate(document)
    except ValidationError as e:
        raise InvalidDocumentError(_format_validation_error("", e))

    errors = []
    nodes = []
    for node_doc in net_doc.nodes:
        # null 与缺失同样处理，使用默认值
        payload = {k: v for k, v in node_doc.data.items() if v is not None}
        payload["id"] = node_doc.id
        payload["position"] = node_doc.position

        if node_doc.type == NodeKind.PLACE.value:
            node_cls = Place
        elif node_doc.type == NodeKind.TRANSITION.value:
            node_cls = Transition
            # 旧文档没有 tokensRemoved 字段
            payload.setdefault("tokensRemoved", False)
        else:
            errors.append(f"节点 '{node_doc.id}': 未知节点类型 '{node_doc.type}'")
            continue

        payload.pop("kind", None)
        try:
            nodes.append(node_cls.model_validate(payload))
        except ValidationError as e:
            errors.extend(_format_validation_error(f"节点 '{node_doc.id}' ", e))

    arcs = []
    for edge_doc in net_doc.edges:
        payload = {k: v for k, v in (edge_doc.data or {}).items() if v is not None}
        payload.update({
            "id": edge_doc.id,
            "source": edge_doc.source,
            "target": edge_doc.target,
        })
        try:
            arcs.append(Arc.model_validate(payload))
        except ValidationError as e:
            errors.extend(_format_validation_error(f"弧 '{edge_doc.id}' ", e))

    if errors:
        raise InvalidDocumentError(errors)

    return PetriNetModel(nodes=nodes, arcs=arcs)


def import_model(text: str) -> ImportResult:
    """
    从JSON字符串导入模型

    Args:
        text: JSON字符串

    Returns:
        ImportResult导入结果
    """
    try:
        document = json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        # 嵌套过深的文档同样按非法JSON处理
        logger.warning("导入失败，不是合法的JSON: %s", e)
        return ImportResult(success=False, errors=[f"不是合法的JSON: {e}"])

    try:
        model = document_to_model(document)
    except InvalidDocumentError as e:
        logger.warning("导入失败，文档结构无效: %s", e)
        return ImportResult(success=False, errors=e.errors)

    valid, errors, warnings = validate_model(model)
    if not valid:
        logger.warning("导入失败，网络结构无效: %s", "; ".join(errors))
        return ImportResult(success=False, errors=errors, warnings=warnings)

    model.renumber()
    return ImportResult(
        success=True,
        model=model,
        warnings=warnings,
        next_node_index=next_node_index(model)
    )


def import_model_bytes(content: bytes) -> ImportResult:
    """
    从字节内容导入模型

    Args:
        content: 文件字节内容

    Returns:
        ImportResult导入结果
    """
    # 尝试不同编码
    encodings = ["utf-8-sig", "utf-8", "latin-1"]

    for encoding in encodings:
        try:
            text = content.decode(encoding)
        except UnicodeDecodeError:
            continue
        return import_model(text)

    return ImportResult(
        success=False,
        errors=["无法识别文件编码，请使用UTF-8编码"]
    )


def import_model_file(path: str) -> ImportResult:
    """
    从文件导入模型

    Args:
        path: 文件路径

    Returns:
        ImportResult导入结果
    """
    try:
        with open(path, "rb") as f:
            content = f.read()
    except OSError as e:
        logger.warning("读取文件失败 %s: %s", path, e)
        return ImportResult(success=False, errors=[f"无法读取文件: {e}"])
    return import_model_bytes(content)

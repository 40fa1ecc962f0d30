"""
异常定义
仅在引擎内部使用，引擎对外接口统一返回布尔值或结果对象
"""


class PetriNetError(RuntimeError):
    """引擎内部错误基类"""


class InvalidDocumentError(PetriNetError):
    """导入文档不是合法JSON或结构不符合要求"""

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))

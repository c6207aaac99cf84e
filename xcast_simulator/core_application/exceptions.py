"""
Core application errors
"""


class MalformedMessageError(ValueError):
    """入站消息无法解析或缺少必需字段"""


class UnknownOperationError(ValueError):
    """入站命令的方法名不是已知的生命周期操作"""

    def __init__(self, operation: str):
        super().__init__(f"Unknown operation: {operation}")
        self.operation = operation

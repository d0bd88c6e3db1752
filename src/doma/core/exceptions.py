"""核心层异常体系

除 NotifierError 外，所有异常都原样返回给调用方；通知失败只记录日志。
"""


class DomaError(Exception):
    """核心层基础异常"""

    code = "DOMA_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomaError):
    """输入不合法：缺少必填字段、位置二选一违规、枚举值非法等"""

    code = "VALIDATION_ERROR"


class NotFoundError(DomaError):
    """引用的 task / space / user / equipment 不存在"""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str) -> None:
        """
        Args:
            entity: 实体名称，如 "Task"
            entity_id: 不存在的 ID
        """
        super().__init__(f"{entity} with id {entity_id} does not exist")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(DomaError):
    """状态流转不合法，操作无副作用"""

    code = "INVALID_TRANSITION"

    def __init__(self, entity: str, from_status: str, to_status: str, reason: str = "") -> None:
        message = f"{entity} cannot transition from {from_status} to {to_status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.from_status = from_status
        self.to_status = to_status


class ConcurrencyConflictError(DomaError):
    """乐观锁冲突：调用方持有的版本已过期"""

    code = "CONCURRENCY_CONFLICT"

    def __init__(self, entity: str, entity_id: str, expected_version: int) -> None:
        super().__init__(
            f"{entity} {entity_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.entity_id = entity_id
        self.expected_version = expected_version


class NotifierError(DomaError):
    """通知发送失败

    引擎捕获此异常并记录日志，状态变更仍视为成功。
    """

    code = "NOTIFIER_FAILURE"

    def __init__(self, user_id: str, reason: str) -> None:
        super().__init__(f"Failed to notify user {user_id}: {reason}")
        self.user_id = user_id

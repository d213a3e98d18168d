# blog_api/core/errors.py
"""
统一异常体系：service 层只抛这些类型，由 main.py 的全局 handler 翻译成 HTTP 状态码。

- ValidationError          400  入参越界/格式错误
- AuthenticationError      401  登录失败（不区分“用户不存在”和“口令错误”）
- Unauthenticated          401  需要登录但没有凭证
- InvalidTokenError        401  签名错误/格式错误/已过期
- InactiveUserError        401  令牌对应用户已停用或不存在
- Forbidden                403  已登录但角色不足
- NotFound                 404
- DuplicateCredentialError 409  username/email 唯一约束冲突
- ConfigurationError       500  缺少签名秘钥等致命配置
- TransactionError         500  ID 重排事务失败（已回滚）
"""
from typing import Any, Dict


class BlogApiError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code}


class ValidationError(BlogApiError):
    status_code = 400
    code = "validation_error"


class AuthenticationError(BlogApiError):
    status_code = 401
    code = "authentication_failed"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class Unauthenticated(BlogApiError):
    status_code = 401
    code = "unauthenticated"

    def __init__(self, message: str = "Unauthorized. Authentication required."):
        super().__init__(message)


class InvalidTokenError(BlogApiError):
    status_code = 401
    code = "invalid_token"

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class InactiveUserError(BlogApiError):
    status_code = 401
    code = "inactive_user"

    def __init__(self, message: str = "User not found or inactive"):
        super().__init__(message)


class Forbidden(BlogApiError):
    status_code = 403
    code = "forbidden"

    def __init__(self, message: str = "Forbidden. Insufficient permissions."):
        super().__init__(message)


class NotFound(BlogApiError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class DuplicateCredentialError(BlogApiError):
    status_code = 409
    code = "duplicate_credential"

    def __init__(self, message: str = "Username or email already exists"):
        super().__init__(message)


class ConfigurationError(BlogApiError):
    code = "configuration_error"


class TransactionError(BlogApiError):
    code = "transaction_error"

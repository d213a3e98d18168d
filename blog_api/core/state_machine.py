""""模块职能：

定义软删除标志的两种状态与合法迁移：ACTIVE ⇄ DELETED。
BlogPost.is_deleted 与 User.is_active 共用同一套规则；
自迁移（删已删、恢复未删）不合法，调用方据此返回 False 而不是报错。

主要函数/枚举：

RecordState：状态枚举

can_transit(src, dst)：判断是否允许状态迁移"""

from enum import Enum


class RecordState(str, Enum):
    ACTIVE = "ACTIVE"
    DELETED = "DELETED"


VALID = {
    "ACTIVE": {"DELETED"},
    "DELETED": {"ACTIVE"},
}


def can_transit(src: RecordState, dst: RecordState) -> bool:
    return dst in VALID[src]

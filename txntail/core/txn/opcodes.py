"""Operation codes carried in transaction headers."""

from enum import IntEnum


class OpCode(IntEnum):
    """Server operation codes."""
    
    NOTIFICATION = 0
    CREATE = 1
    DELETE = 2
    EXISTS = 3
    GET_DATA = 4
    SET_DATA = 5
    GET_ACL = 6
    SET_ACL = 7
    GET_CHILDREN = 8
    SYNC = 9
    PING = 11
    GET_CHILDREN2 = 12
    CHECK = 13
    MULTI = 14
    CREATE2 = 15
    RECONFIG = 16
    CHECK_WATCHES = 17
    REMOVE_WATCHES = 18
    CREATE_CONTAINER = 19
    DELETE_CONTAINER = 20
    CREATE_TTL = 21
    MULTI_READ = 22
    AUTH = 100
    SET_WATCHES = 101
    SASL = 102
    CREATE_SESSION = -10
    CLOSE_SESSION = -11
    ERROR = -1


OP_NAMES = {
    OpCode.NOTIFICATION: "notification",
    OpCode.CREATE: "create",
    OpCode.DELETE: "delete",
    OpCode.EXISTS: "exists",
    OpCode.GET_DATA: "getData",
    OpCode.SET_DATA: "setData",
    OpCode.GET_ACL: "getACL",
    OpCode.SET_ACL: "setACL",
    OpCode.GET_CHILDREN: "getChildren",
    OpCode.SYNC: "sync",
    OpCode.PING: "ping",
    OpCode.GET_CHILDREN2: "getChildren2",
    OpCode.CHECK: "check",
    OpCode.MULTI: "multi",
    OpCode.CREATE2: "create2",
    OpCode.RECONFIG: "reconfig",
    OpCode.CHECK_WATCHES: "checkWatches",
    OpCode.REMOVE_WATCHES: "removeWatches",
    OpCode.CREATE_CONTAINER: "createContainer",
    OpCode.DELETE_CONTAINER: "deleteContainer",
    OpCode.CREATE_TTL: "createTTL",
    OpCode.MULTI_READ: "multiRead",
    OpCode.AUTH: "auth",
    OpCode.SET_WATCHES: "setWatches",
    OpCode.SASL: "sasl",
    OpCode.CREATE_SESSION: "createSession",
    OpCode.CLOSE_SESSION: "closeSession",
    OpCode.ERROR: "error",
}


def op_name(code: int) -> str:
    """Human-readable name of an operation code, or ``unknown <code>``."""
    try:
        return OP_NAMES[OpCode(code)]
    except ValueError:
        return f"unknown {code}"

from contextvars import ContextVar


RequestId: ContextVar[str] = ContextVar("RequestId", default="None")
RequestMethod: ContextVar[str] = ContextVar("RequestMethod", default="None")
RequestUrl: ContextVar[str] = ContextVar("RequestUrl", default="None")

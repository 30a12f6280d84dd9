"""Lookup failure kinds.

Every failed lookup raises exactly one of these; callers never see a partial
shipment record alongside an error.
"""

class TrackingError(Exception):
    kind = "internal_error"
    status_code = 500
    default_message = "服务器内部错误"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

class EmptyInput(TrackingError):
    kind = "empty_input"
    status_code = 400
    default_message = "快递单号不能为空"

class UnrecognizedCarrier(TrackingError):
    kind = "unrecognized_carrier"
    status_code = 400
    default_message = "无法识别快递公司，请手动选择"

class UnsupportedCarrier(TrackingError):
    kind = "unsupported_carrier"
    status_code = 400
    default_message = "不支持的快递公司"

    def __init__(self, code: str = None, message: str = None):
        self.code = code
        super().__init__(message)

class ShipmentNotFound(TrackingError):
    kind = "not_found"
    status_code = 404
    default_message = "快递单号不存在或已过期"

class InternalError(TrackingError):
    pass

class InfrastructureError(Exception):
    """인프라스트럭처 계층에서 발생하는 모든 예외의 기반 클래스입니다."""
    pass


class TransportError(InfrastructureError):
    """API 서버와의 통신에서 발생하는 모든 예외의 기반 클래스입니다."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RequestFailedError(TransportError):
    """네트워크 오류나 타임아웃으로 요청 자체가 실패했을 때 발생하는 예외입니다."""
    pass


class ServerRejectedError(TransportError):
    """서버가 성공이 아닌 상태 코드로 응답했을 때 발생하는 예외입니다."""
    pass

class DomainError(Exception):
    """도메인 계층에서 발생하는 모든 예외의 기반 클래스입니다."""
    pass


class InvalidUrlError(DomainError):
    """네트워크 요청 전에 걸러지는 잘못된 URL 입력입니다."""
    pass


class InvalidQueryError(DomainError):
    """목록 조회 조건(페이지, 정렬 등)이 유효하지 않을 때 발생하는 예외입니다."""
    pass

class TennisScoreError(Exception):
    pass


class MatchValidationError(TennisScoreError):
    pass


class InvalidSideError(MatchValidationError):
    pass


class NoActiveMatchError(TennisScoreError):
    pass

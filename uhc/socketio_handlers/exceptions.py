"""
Match orchestration errors.

None of these escape the match core as a fatal error: scheduled actions catch
MissingConfiguration and broadcast a warning, rollback catches
WorldMutationFailure per write, and the command surface turns
InvalidCommandInput into a reply message. Operations attempted in the wrong
lifecycle state return silently and raise nothing.
"""


class MatchError(Exception):
    """Base class for match orchestration errors"""
    pass


class MissingConfiguration(MatchError):
    """A location or border world is not configured or not loaded"""
    def __init__(self, setting, detail=None):
        self.setting = setting
        message = f"{setting} is not configured"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class WorldMutationFailure(MatchError):
    """A single world-surface write could not be applied"""
    pass


class InvalidCommandInput(MatchError):
    """Malformed command arguments"""
    pass

class RenderError(Exception):
    """Receipt layout could not be produced"""


class ImageDecodeError(Exception):
    """Embedded image could not be decoded (non-fatal for rendering)"""


class ValidationError(Exception):
    """Delivery request rejected before anything is persisted or sent"""

    def __init__(self, problems: list[str]):
        super().__init__('; '.join(problems))
        self.problems = problems

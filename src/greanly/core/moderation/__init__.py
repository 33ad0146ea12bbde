from .gate import (  # noqa: F401
    CATEGORY_DENIAL_MESSAGES,
    ModerationGate,
    Moderator,
    OpenAIModerator,
    denial_for_categories,
)

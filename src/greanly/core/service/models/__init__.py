"""Domain models for the chat service layer.

Re-exports every public symbol so imports like
``from greanly.core.service.models import ChatMessage`` keep working.
"""

from .constants import *  # noqa: F401, F403
from .events import *  # noqa: F401, F403
from .generation import *  # noqa: F401, F403
from .messages import *  # noqa: F401, F403
from .pipeline import *  # noqa: F401, F403

"""Centralized FastAPI dependency type aliases.

Import these ``*Dep`` aliases in route modules instead of writing
``Annotated[T, Depends(get_xxx)]`` everywhere.  Each alias corresponds to
a single ``get_*`` factory and can be overridden in tests via
``app.dependency_overrides[get_xxx] = ...``.
"""

from typing import Annotated

from fastapi import Depends

from greanly.configs.config import AppConfig, get_app_config, get_chat_config
from greanly.configs.system import ChatConfig
from greanly.core.service.deps import get_chat_orchestrator
from greanly.core.service.orchestrator import ChatOrchestrator

AppConfigDep = Annotated[AppConfig, Depends(get_app_config)]
ChatConfigDep = Annotated[ChatConfig, Depends(get_chat_config)]
ChatOrchestratorDep = Annotated[ChatOrchestrator, Depends(get_chat_orchestrator)]

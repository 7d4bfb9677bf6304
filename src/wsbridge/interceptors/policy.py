"""PolicyInterceptor: allow or deny tool calls by name.

Pure rule evaluation, no I/O. Rules in ``policies`` are walked in order
(first match wins) and ``default_action`` applies otherwise. A denied call
is cancelled in the before-phase, so its handler never runs.
"""

from __future__ import annotations

import fnmatch
import logging
from typing import TYPE_CHECKING

from wsbridge.config import PolicyAction, PolicySettings, ToolPolicy
from wsbridge.core.interceptors import BaseInterceptor

if TYPE_CHECKING:
    from wsbridge.core.interceptors import RequestContext

logger = logging.getLogger(__name__)


class PolicyEngine:
    """Evaluate a tool name against :class:`PolicySettings`."""

    def __init__(self, settings: PolicySettings) -> None:
        self._settings = settings

    def evaluate(self, tool_name: str) -> tuple[PolicyAction, str]:
        """Return the action for *tool_name* and the matching rule's reason."""
        if not self._settings.enabled:
            return PolicyAction.ALLOW, ""

        for policy in self._settings.policies:
            if self._matches(policy, tool_name):
                return policy.action, policy.reason

        return self._settings.default_action, ""

    @staticmethod
    def _matches(policy: ToolPolicy, tool_name: str) -> bool:
        return fnmatch.fnmatchcase(tool_name, policy.pattern)


class PolicyInterceptor(BaseInterceptor):
    name = "policy"

    def __init__(self, settings: PolicySettings) -> None:
        self._engine = PolicyEngine(settings)

    async def before_request(self, context: RequestContext) -> RequestContext | None:
        action, reason = self._engine.evaluate(context.tool_name)
        if action == PolicyAction.DENY:
            logger.warning(
                "Tool %s denied by policy%s",
                context.tool_name,
                f": {reason}" if reason else "",
            )
            return None
        context.annotations["policy"] = action.value
        return context

# relaybot/core/router.py
"""
Predicate-tree router.

``router([...])`` evaluates route nodes strictly in declaration order and
hands back the action of the first node whose predicate matches; nodes after
the first match are never evaluated. A ``route("*", ...)`` node matches
unconditionally, so declaring it first shadows every node after it.

Usage::

    app = router([
        text("hi", say_hi),
        messenger.postback(handle_postback),
        route("*", fallback),
    ])
    bot.on_event(app)
"""
from __future__ import annotations

import inspect
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Pattern, Union

if TYPE_CHECKING:
    from relaybot.core.context import Context


@dataclass(frozen=True)
class Props:
    """Extra arguments passed to every action alongside the context."""
    next: "Action | None" = None
    error: BaseException | None = None
    match: "re.Match[str] | None" = None


Action = Callable[["Context", Props], Any]
Predicate = Callable[["Context"], Union[bool, Awaitable[bool]]]
Pattern_ = Union[str, Pattern[str], Iterable[str]]


@dataclass(frozen=True)
class RouteNode:
    predicate: Predicate
    action: Action


def _always(context: "Context") -> bool:
    return True


def route(predicate: Predicate | str, action: Action) -> RouteNode:
    """Pair a predicate with an action. ``"*"`` matches every context."""
    if predicate == "*":
        predicate = _always
    if not callable(predicate):
        raise TypeError(f"route predicate must be callable or '*', got {predicate!r}")
    return RouteNode(predicate=predicate, action=action)


async def evaluate(predicate: Predicate, context: "Context") -> bool:
    result = predicate(context)
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


async def run_action(action: Action | None, context: "Context", props: Props | None = None) -> None:
    """
    Invoke an action and follow its continuations.

    An action may return another action; it is invoked with the same context
    and props until a non-callable result ends the chain.
    """
    props = props or Props()
    current: Any = action
    while callable(current):
        current = current(context, props)
        if inspect.isawaitable(current):
            current = await current


def router(routes: Iterable[RouteNode]) -> Action:
    """Build an action that dispatches to the first matching route node."""
    nodes = list(routes)

    async def dispatch(context: "Context", props: Props | None = None) -> Action | None:
        props = props or Props()
        for node in nodes:
            if await evaluate(node.predicate, context):
                return node.action
        return props.next

    dispatch.routes = nodes  # type: ignore[attr-defined]
    return dispatch


# ============================================================================
# PREDICATE HELPERS
# ============================================================================

def _match_value(pattern: Pattern_, value: str | None) -> "bool | re.Match[str]":
    if value is None:
        return False
    if pattern == "*":
        return True
    if isinstance(pattern, str):
        return value == pattern
    if isinstance(pattern, re.Pattern):
        return pattern.search(value) or False
    return value in list(pattern)


def _with_match(pattern: Pattern_, extract: Callable[["Context"], str | None], action: Action) -> Action:
    if not isinstance(pattern, re.Pattern):
        return action

    def with_match(context: "Context", props: Props | None = None) -> Any:
        props = props or Props()
        found = _match_value(pattern, extract(context))
        match = found if isinstance(found, re.Match) else None
        return action(context, replace(props, match=match))

    return with_match


def _event_text(context: "Context") -> str | None:
    return context.event.text if context.event.is_text else None


def _event_payload(context: "Context") -> str | None:
    return context.event.payload if context.event.is_payload else None


def text(pattern: Pattern_, action: Action) -> RouteNode:
    """Match text events by exact string, list of strings, regex, or ``"*"``.

    For a regex pattern the match object is available as ``props.match``.
    """
    return route(
        lambda context: bool(_match_value(pattern, _event_text(context))),
        _with_match(pattern, _event_text, action),
    )


def payload(pattern: Pattern_, action: Action) -> RouteNode:
    """Match postback/callback payloads the same way ``text()`` matches text."""
    return route(
        lambda context: bool(_match_value(pattern, _event_payload(context))),
        _with_match(pattern, _event_payload, action),
    )


def platform(name: str, action: Action) -> RouteNode:
    return route(lambda context: context.platform == name, action)


# ============================================================================
# PLATFORM ROUTE NAMESPACES
# ============================================================================

def platform_route(
    platform_name: str,
    flag: str | None = None,
    condition: Callable[[Any], bool] | None = None,
) -> Callable[[Action], RouteNode]:
    """
    Route builder for ``<platform>.<event kind>(action)``.

    The predicate is the platform discriminant check conjoined with an
    optional event flag (e.g. ``"is_postback"``) and an optional condition
    on the event.
    """
    def predicate(context: "Context") -> bool:
        if context.platform != platform_name:
            return False
        if flag is not None and not getattr(context.event, flag, False):
            return False
        if condition is not None and not condition(context.event):
            return False
        return True

    def build(action: Action) -> RouteNode:
        return route(predicate, action)

    return build


class RouteGroup:
    """A callable route builder that also carries named sub-routes.

    ``messenger(action)`` matches any Messenger event while
    ``messenger.account_linking.linked(action)`` narrows it.
    """

    def __init__(self, build: Callable[[Action], RouteNode], **children: Any) -> None:
        self._build = build
        for name, child in children.items():
            setattr(self, name, child)

    def __call__(self, action: Action) -> RouteNode:
        return self._build(action)

    @property
    def any(self) -> "RouteGroup":
        return self

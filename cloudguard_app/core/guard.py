"""Перенаправления между разделами приложения в зависимости от сессии."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from cloudguard_app.constants import AUTH_SECTION, ROUTE_HOME, ROUTE_LOGIN
from cloudguard_app.models import SessionState, SessionStatus

if TYPE_CHECKING:
    from cloudguard_app.core.session import SessionStore

logger = logging.getLogger(__name__)

Navigator = Callable[[str], None]


class RouteAction(str, Enum):
    LOADING = "loading"
    RENDER = "render"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class RouteDecision:
    """Результат проверки маршрута; target задан только для REDIRECT"""

    action: RouteAction
    target: Optional[str] = None


def section_of(location: str) -> str:
    """Первый сегмент пути: '/(auth)/login' -> '(auth)'"""
    segments = [segment for segment in location.split("/") if segment]
    return segments[0] if segments else ""


def decide_route(state: SessionState, location: str) -> RouteDecision:
    """
    Решение для текущего маршрута.

    Пока идет загрузка (или check_auth еще не завершился) перенаправлений
    нет, показывается индикатор загрузки.
    """
    if state.is_loading or state.status == SessionStatus.UNKNOWN:
        return RouteDecision(RouteAction.LOADING)

    in_auth_section = section_of(location) == AUTH_SECTION

    if not state.is_authenticated and not in_auth_section:
        return RouteDecision(RouteAction.REDIRECT, ROUTE_LOGIN)
    if state.is_authenticated and in_auth_section:
        return RouteDecision(RouteAction.REDIRECT, ROUTE_HOME)
    return RouteDecision(RouteAction.RENDER)


class RouteGuard:
    """
    Следит за сессией и текущим маршрутом и вызывает navigator при
    необходимости перенаправления.
    """

    def __init__(self, session: "SessionStore", navigator: Navigator, location: str = "/") -> None:
        """
        Args:
            session: Хранилище сессии
            navigator: Функция перехода на маршрут (например, router.replace)
            location: Текущий маршрут
        """
        self._session = session
        self._navigator = navigator
        self.location = location
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self) -> "RouteGuard":
        """Подписаться на изменения сессии"""
        if self._unsubscribe is None:
            self._unsubscribe = self._session.subscribe(self._on_state)
        return self

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def navigate(self, location: str) -> RouteDecision:
        """Пользователь перешел на новый маршрут"""
        self.location = location
        return self.evaluate()

    def evaluate(self) -> RouteDecision:
        decision = decide_route(self._session.state, self.location)
        if decision.action == RouteAction.REDIRECT and decision.target is not None:
            logger.info(f"Redirecting from {self.location} to {decision.target}")
            self.location = decision.target
            self._navigator(decision.target)
        return decision

    def _on_state(self, state: SessionState) -> None:
        self.evaluate()

"""Sequential bootstrap of a trading session.

Stages run in a fixed order and each one is entered only after the previous
one returned. The first failure moves the orchestrator to ``FAILED`` and
raises ``BootstrapFailure``; nothing is retried and the process lifecycle is
left to the caller.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional

from .catalog import TokenCatalog, load_catalog, resolve_pair
from .config import DEFAULT_CATALOG_PATH, DEFAULT_CONFIG_PATH, AgentConfig, TradingConfig, load_trading_config
from .connection import open_connection
from .credentials import credential_from_env
from .eligibility import check_eligibility
from .errors import BootstrapFailure
from .http_client import HttpClient
from .jupiter import JupiterClient
from .models import BootstrapResult, Credential, Session
from .session import build_session

LOG = logging.getLogger(__name__)


class Stage(Enum):
    IDLE = "Idle"
    LOADING_CONFIG = "Loading config"
    LOADING_CATALOG = "Loading tokens"
    VALIDATING_CREDENTIAL = "Checking wallet"
    CONNECTING_NETWORK = "Setting up connection"
    CHECKING_ELIGIBILITY = "Checking eligibility"
    BUILDING_SESSION = "Loading Jupiter"
    READY = "Ready"
    FAILED = "Failed"

    @property
    def label(self) -> str:
        return self.value


Observer = Callable[[Stage, Stage], None]


def log_transition(previous: Stage, current: Stage) -> None:
    if current is Stage.READY:
        LOG.info("Setup done!")
    elif current is not Stage.FAILED:
        LOG.info("%s...", current.label)


class BootstrapOrchestrator:
    def __init__(
        self,
        config_loader: Callable[[], TradingConfig],
        catalog_loader: Callable[[], TokenCatalog],
        credential_source: Callable[[], Credential],
        connection_factory: Callable[[str], Any],
        eligibility_check: Callable[[Any, Credential], Any],
        session_builder: Callable[[Any, Credential, str], Session],
        observers: Iterable[Observer] = (log_transition,),
    ) -> None:
        self.config_loader = config_loader
        self.catalog_loader = catalog_loader
        self.credential_source = credential_source
        self.connection_factory = connection_factory
        self.eligibility_check = eligibility_check
        self.session_builder = session_builder
        self.observers: List[Observer] = list(observers)
        self.state = Stage.IDLE
        self.failed_stage: Optional[Stage] = None
        self.error: Optional[BaseException] = None

    @classmethod
    def default(
        cls,
        agent_config: AgentConfig = AgentConfig(),
        config_path: Path = DEFAULT_CONFIG_PATH,
        catalog_path: Path = DEFAULT_CATALOG_PATH,
        environ: Optional[Mapping[str, str]] = None,
        observers: Iterable[Observer] = (log_transition,),
    ) -> "BootstrapOrchestrator":
        aggregator = JupiterClient(agent_config.jupiter_base_url, HttpClient.from_config(agent_config))

        def eligibility(connection, credential: Credential):
            return check_eligibility(connection, credential.pubkey)

        def session_builder(connection, credential: Credential, cluster: str) -> Session:
            return build_session(connection, credential, cluster, aggregator)

        return cls(
            config_loader=partial(load_trading_config, config_path),
            catalog_loader=partial(load_catalog, catalog_path),
            credential_source=partial(credential_from_env, environ),
            connection_factory=partial(
                open_connection,
                commitment=agent_config.commitment,
                timeout=agent_config.request_timeout,
            ),
            eligibility_check=eligibility,
            session_builder=session_builder,
            observers=observers,
        )

    def add_observer(self, observer: Observer) -> None:
        self.observers.append(observer)

    def _transition(self, stage: Stage) -> None:
        previous, self.state = self.state, stage
        for observer in self.observers:
            observer(previous, stage)

    def _fail(self, stage: Stage, error: BaseException) -> BootstrapFailure:
        self.failed_stage = stage
        self.error = error
        self._transition(Stage.FAILED)
        LOG.error("%s failed: %s", stage.label, error)
        return BootstrapFailure(stage, error)

    def _step(self, stage: Stage, action: Callable[[], Any]) -> Any:
        self._transition(stage)
        try:
            return action()
        except Exception as exc:
            raise self._fail(stage, exc) from exc

    def run(self) -> BootstrapResult:
        if self.state is not Stage.IDLE:
            raise RuntimeError(f"bootstrap already ran (state={self.state.label})")

        config = self._step(Stage.LOADING_CONFIG, self.config_loader)
        token_a, token_b = self._step(
            Stage.LOADING_CATALOG, lambda: resolve_pair(self.catalog_loader(), config)
        )
        credential = self._step(Stage.VALIDATING_CREDENTIAL, self.credential_source)
        connection = self._step(
            Stage.CONNECTING_NETWORK, lambda: self.connection_factory(config.primary_rpc)
        )
        self._step(Stage.CHECKING_ELIGIBILITY, lambda: self.eligibility_check(connection, credential))
        session = self._step(
            Stage.BUILDING_SESSION,
            lambda: self.session_builder(connection, credential, config.network),
        )

        self._transition(Stage.READY)
        return BootstrapResult(session=session, token_a=token_a, token_b=token_b, config=config)

"""
Runtime context for GrantGate.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from grantgate.auth.authorizer import Authorizer
from grantgate.core.crypto import Ed25519KeyManager
from grantgate.core.time import Clock, SystemClock
from grantgate.engine.engine import GrantEngine
from grantgate.runtime.config import EngineConfig
from grantgate.store.base import InMemoryStore, KeyValueStore
from grantgate.store.journal import JournalStore
from grantgate.token.gateway import TokenDirectory

logger = logging.getLogger(__name__)


@dataclass
class RuntimeContext:
    """A wired engine plus the pieces it was built from."""

    config: EngineConfig
    store:  KeyValueStore
    engine: GrantEngine

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        tokens: TokenDirectory,
        authorizer: Optional[Authorizer] = None,
        clock: Optional[Clock] = None,
    ) -> "RuntimeContext":
        """
        Build store and engine from configuration.

        The token directory and authorizer are host collaborators and are
        always passed in. A signing key path that does not exist yet gets
        a freshly generated key saved to it.
        """
        logging.getLogger("grantgate").setLevel(config.log_level)

        store = build_store(config)
        engine = GrantEngine(
            store,
            tokens,
            authorizer=authorizer,
            clock=clock or SystemClock(),
            custody_address=config.custody_address,
            require_active_for_approval=config.require_active_for_approval,
        )
        return cls(config=config, store=store, engine=engine)

    @classmethod
    def from_yaml(
        cls,
        config_file: Path,
        tokens: TokenDirectory,
        authorizer: Optional[Authorizer] = None,
        clock: Optional[Clock] = None,
    ) -> "RuntimeContext":
        return cls.from_config(EngineConfig.from_yaml(config_file), tokens, authorizer, clock)

    def __repr__(self) -> str:
        return f"RuntimeContext(store={self.store!r})"


def build_store(config: EngineConfig) -> KeyValueStore:
    if config.store_path is None:
        return InMemoryStore()

    key_manager = None
    if config.signing_key_path is not None:
        key_path = Path(config.signing_key_path)
        if key_path.exists():
            key_manager = Ed25519KeyManager.from_file(key_path)
        else:
            key_manager = Ed25519KeyManager.generate()
            key_manager.save(key_path)
            logger.info("Generated journal signing key at %s", key_path)

    return JournalStore(config.store_path, key_manager=key_manager)

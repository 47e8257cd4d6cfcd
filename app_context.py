from __future__ import annotations

from dataclasses import dataclass

from batch_generator import BatchGenerator
from config import Config
from core.storage import AccountStore
from whisk_client import WhiskClient


@dataclass(slots=True)
class AppContext:
    cfg: Config
    client: WhiskClient
    accounts: AccountStore
    generator: BatchGenerator

    async def close(self) -> None:
        await self.client.close()


def create_app_context(cfg: Config) -> AppContext:
    client = WhiskClient(cfg)
    return AppContext(
        cfg=cfg,
        client=client,
        accounts=AccountStore(cfg.accounts_path),
        generator=BatchGenerator(client, cfg),
    )

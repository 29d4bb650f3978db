import asyncio
import unittest
from pathlib import Path

from cli import commands
from ensight.services.resolver import NameResolver
from ensight.services.risk import BLACKLIST_KEY
from ensight.services.store import MemoryStore
from ensight.settings import Settings

SAMPLE_DIR = Path(__file__).resolve().parents[1] / "sample_data"
ALICE = "0x" + "aa" * 20
BOB = "0x" + "bb" * 20
CAROL = "0x" + "cc" * 20
SCAM = "0xbad0000000000000000000000000000000000001"


class OfflineResolver(NameResolver):
    async def resolve_name(self, name):
        return None

    async def lookup_address(self, address):
        return "alice.eth" if address == ALICE else None

    async def get_text(self, name, key):
        return None


class SmokeTest(unittest.TestCase):
    def test_ingest_sample_data(self):
        services = commands.build_services(Settings(), store=MemoryStore(), resolver=OfflineResolver())

        async def scenario():
            await services.store.sadd(BLACKLIST_KEY, SCAM)
            result = await commands.ingest_file(
                services, SAMPLE_DIR / "interactions.ndjson", skip_errors=True
            )
            view = await commands.show_address(services, ALICE)
            bob = await commands.show_address(services, BOB)
            return result, view, bob

        result, alice, bob = asyncio.run(scenario())

        self.assertEqual(result.events_recorded, 5)
        self.assertEqual(result.events_skipped, 1)
        self.assertEqual(result.errors[0]["line"], 6)
        self.assertFalse(result.persisted)

        self.assertEqual(alice.node.label, "alice.eth")
        self.assertEqual(alice.node.interaction_count, 3)
        self.assertEqual(alice.risk_summary.total_neighbor_count, 2)
        self.assertEqual(alice.risk_summary.flagged_neighbor_count, 1)
        types = {e.key: e.edge_type for e in alice.edges}
        self.assertEqual(types, {f"{ALICE}:{BOB}": "sent_tx", f"{ALICE}:{SCAM}": "signed_for"})

        self.assertEqual(bob.node.interaction_count, 4)
        self.assertEqual(
            sorted(e.key for e in bob.edges),
            sorted([f"{ALICE}:{BOB}", f"unknown:{BOB}", f"{CAROL}:{BOB}"]),
        )
        edge = next(e for e in bob.edges if e.key == f"{ALICE}:{BOB}")
        self.assertEqual(edge.count, 2)
        self.assertEqual(edge.chain_id, 1)
        self.assertIsNone(edge.has_data)


if __name__ == "__main__":
    unittest.main()

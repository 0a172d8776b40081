"""Inspect a pool, check a recipients CSV against it and run the payout.

Usage:
    PRIVATE_KEY=0x... RPC_URLS='{"10": "https://..."}' \
        PYTHONPATH=src python scripts/run_disbursement.py 10 42 recipients.csv [--execute]

Without --execute nothing is signed; the script stops after the review.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


async def main(chain_id: int, pool_id: int, csv_path: str, execute: bool) -> int:
    from allodisburse.container import Container
    from allodisburse.distribution.review import review_distribution
    from allodisburse.exceptions import PartialDistributionError
    from allodisburse.infra.blockchain.evm.signer import LocalAccountSigner
    from allodisburse.ingest.csv_ingestor import parse_and_validate
    from allodisburse.utils.amounts import format_amount

    container = Container()
    settings = container.settings()
    networks = container.networks()
    inspector = container.pool_inspector()
    directory = container.recipient_directory()
    orchestrator = container.orchestrator()

    try:
        # --- Step 1: Pool ---
        pool = await inspector.get_pool_info(pool_id, chain_id)
        print(f"Pool {pool_id} on {networks.get(chain_id).name}")
        print(f"  strategy:  {pool.strategy.canonical_identity or 'unknown'} ({pool.strategy.address})")
        print(f"  token:     {pool.token.symbol} ({pool.token.decimals} decimals)")
        print(f"  total:     {format_amount(pool.total_amount, pool.token)}")
        print(f"  available: {format_amount(pool.available_amount, pool.token)}")
        if pool.is_degraded:
            print(f"  WARNING: could not read {', '.join(pool.degraded_fields)}")

        # --- Step 2: CSV ---
        validation = parse_and_validate(Path(csv_path).read_text(encoding="utf-8-sig"), pool.token.decimals)
        print(f"\n{len(validation.valid_rows)}/{validation.total_rows} rows valid")
        for err in validation.errors:
            print(f"  row {err.row}: {err.error}")

        # --- Step 3: Review ---
        addresses = [r.checksummed_address for r in validation.valid_rows]
        approvals = await directory.validate_against_pool(pool_id, chain_id, addresses, strategy=pool.strategy)
        review = review_distribution(pool, validation.valid_rows, approvals)
        preview = orchestrator.prepare_distribution_data(pool.strategy.canonical_identity, validation.valid_rows)
        print(f"\nTotal {format_amount(review.total_amount, pool.token)} to {review.total_recipients} recipients")
        print(f"Rough gas: {preview.rough_gas_estimate:,}")
        for issue in review.issues:
            print(f"  BLOCKED: {issue}")
        if not review.can_proceed or not preview.can_distribute:
            return 1
        if not execute:
            print("\nDry run; pass --execute to submit")
            return 0

        # --- Step 4: Execute ---
        signer = LocalAccountSigner.from_private_key(
            os.environ["PRIVATE_KEY"],
            container.reader_factory()(chain_id),
            chain_id,
            poll_interval=settings.receipt_poll_interval,
            max_polls=settings.receipt_max_polls,
        )
        if not await inspector.check_distribution_permission(pool_id, chain_id, signer.address):
            print(f"{signer.address} is not a manager of pool {pool_id}")
            return 1

        try:
            hashes = await orchestrator.execute(
                pool.strategy.canonical_identity, pool.strategy.address, validation.valid_rows, signer, chain_id,
            )
        except PartialDistributionError as e:
            print(f"\nPARTIAL: {e}")
            for step in e.sequence.steps:
                print(f"  {step.name}: {networks.get(chain_id).tx_url(step.tx_hash)}")
            return 2

        for tx_hash in hashes:
            print(f"  {networks.get(chain_id).tx_url(tx_hash)}")
        return 0
    finally:
        await container.http_client().close()


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--execute"]
    if len(args) != 3:
        print(__doc__)
        sys.exit(64)
    sys.exit(asyncio.run(main(int(args[0]), int(args[1]), args[2], "--execute" in sys.argv)))

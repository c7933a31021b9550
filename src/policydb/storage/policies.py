"""Policy store backed by the ``policies`` bucket."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from policydb.core.errors import NoRecordsCreatedError, RecordNotFoundError
from policydb.core.types import BYTE_ORDER, POLICY_BUCKET
from policydb.storage.codec import decode_policy, encode_policy
from policydb.storage.kvdb import BucketDB, BucketNotFoundError


if TYPE_CHECKING:
    from policydb.config.settings import Settings
    from policydb.core.models import Policy
    from policydb.core.types import ByteOrder
    from policydb.storage.kvdb import Bucket, Tx

logger = logging.getLogger(__name__)


class PolicyStore:
    """Stores policies keyed by payment hash.

    Each policy is kept as its fixed-width encoding under its payment hash.
    Inserts of the same hash overwrite; there is no per-record delete, only
    ``delete_all``.
    """

    def __init__(self, db: BucketDB) -> None:
        self.db = db
        self._bucket_name = POLICY_BUCKET
        self._byte_order: ByteOrder = BYTE_ORDER

    def insert(self, policy: Policy) -> None:
        """Persist a policy, replacing any policy with the same hash."""
        # Serialize before starting the transaction so a serialization error
        # never touches the database.
        policy_bytes = encode_policy(policy, self._byte_order)

        def put(tx: Tx) -> None:
            policies = tx.create_bucket_if_not_exists(self._bucket_name)
            policies.put(policy.payment_hash, policy_bytes)

        self.db.batch(put)
        logger.info("Stored policy %s (fee=%d)", policy.hash_hex, policy.fee)

    def fetch_all(self) -> list[Policy]:
        """Return every stored policy, ordered by payment hash.

        Raises:
            NoRecordsCreatedError: If no policy was ever inserted and the
                store was never reset.
        """
        policies: list[Policy] = []
        with self.db.view() as tx:
            bucket = tx.bucket(self._bucket_name)
            if bucket is None:
                raise NoRecordsCreatedError
            for _, value in bucket.items():
                # Empty values are reserved for nested buckets.
                if not value:
                    continue
                policies.append(decode_policy(value, self._byte_order))
        return policies

    def lookup(self, payment_hash: bytes) -> Policy:
        """Return the policy stored under ``payment_hash``.

        Raises:
            NoRecordsCreatedError: If the policies bucket does not exist.
            RecordNotFoundError: If no policy is stored under the hash.
        """
        with self.db.view() as tx:
            bucket = tx.bucket(self._bucket_name)
            if bucket is None:
                raise NoRecordsCreatedError
            return self._fetch_policy(bucket, payment_hash)

    def delete_all(self) -> None:
        """Remove every policy, leaving an empty but initialized store."""
        with self.db.update() as tx:
            try:
                tx.delete_bucket(self._bucket_name)
            except BucketNotFoundError:
                pass
            tx.create_bucket(self._bucket_name)
        logger.info("Deleted all policies")

    def _fetch_policy(self, bucket: Bucket, payment_hash: bytes) -> Policy:
        policy_bytes = bucket.get(payment_hash)
        if policy_bytes is None:
            raise RecordNotFoundError
        return decode_policy(policy_bytes, self._byte_order)


def open_store(settings: Settings) -> PolicyStore:
    """Open the policy store described by ``settings``."""
    db = BucketDB(
        settings.db.path,
        timeout=settings.db.timeout,
        max_batch_size=settings.db.max_batch_size,
    )
    logger.debug("Opened policy database at %s", db.path)
    return PolicyStore(db)

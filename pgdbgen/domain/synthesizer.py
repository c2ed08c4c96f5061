"""
Record synthesizer.

Builds one self-consistent `Record` from a caller-owned random generator.
Nothing here touches shared state: workers each hold their own
`random.Random` and `Faker`, and a seeded pair reproduces a record exactly.
"""

from __future__ import annotations

import hashlib
import random
import time
import uuid
from decimal import Decimal
from typing import List, Optional

from faker import Faker

from pgdbgen.config import Settings, SynthesisConfig
from pgdbgen.domain.models import Account, BuyingStat, Payment, Product, Record, round2

MIN_PRICE = 1.0
MAX_PRICE = 250.0
MAX_QUANTITY = 6
EVENT_WINDOW = 30 * 24 * 60 * 60
SAMPLE_LIMIT = 10


def rand_range_int(rng: random.Random, low: int, high: int) -> int:
    """Uniform integer in [low, high]; collapses to `low` on an empty range."""
    if high <= low:
        return low
    return rng.randint(low, high)


def rand_range_float(rng: random.Random, low: float, high: float) -> float:
    if high <= low:
        return low
    return rng.uniform(low, high)


def random_uuid(rng: random.Random) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def random_md5(rng: random.Random) -> str:
    """32 hex chars: MD5 of 32 random bytes. A formatting choice, not security."""
    return hashlib.md5(rng.randbytes(32), usedforsecurity=False).hexdigest()


def make_faker(rng: random.Random, locale: str = "en_US") -> Faker:
    """Faker instance seeded from `rng` so it stays private to its owner."""
    fake = Faker(locale)
    fake.seed_instance(rng.getrandbits(64))
    return fake


def generate_record(
    rng: random.Random,
    config: SynthesisConfig,
    faker: Optional[Faker] = None,
    now: Optional[int] = None,
) -> Record:
    """
    Generate one record whose amounts and epochs agree across its four rows.

    Parameters
    ----------
    rng : random.Random
        Source of every numeric draw, key and hash.
    config : SynthesisConfig
        Account age range and last-login delay, in seconds.
    faker : Faker, optional
        Supplies usernames, emails, words and names. Seeded from `rng` when
        omitted.
    now : int, optional
        Reference epoch in seconds; defaults to the wall clock.
    """
    fake = faker or make_faker(rng)
    if now is None:
        now = int(time.time())

    created = now - rand_range_int(rng, config.min_days, config.max_days)
    last_login = created + rand_range_int(rng, 0, config.delay_last_login)

    price = round2(rand_range_float(rng, MIN_PRICE, MAX_PRICE))
    quantity = rand_range_int(rng, 1, MAX_QUANTITY)
    total = round2(price * Decimal(quantity))

    account = Account(
        uuid=random_uuid(rng),
        username=fake.user_name(),
        email=fake.email(),
        password=fake.password(),
        created_epoch=created,
        last_login_epoch=last_login,
    )
    product = Product(
        uuid=random_uuid(rng),
        name=fake.word(),
        authors=", ".join([fake.name(), fake.name()]),
        price=price,
    )
    payment = Payment(
        md5=random_md5(rng),
        amount=total,
        epoch=now - rand_range_int(rng, 0, EVENT_WINDOW),
    )
    buying_stat = BuyingStat(
        account_uuid=account.uuid,
        product_uuid=product.uuid,
        quantity=quantity,
        total_amount=total,
        epoch=now - rand_range_int(rng, 0, EVENT_WINDOW),
    )
    return Record(account=account, product=product, payment=payment, buying_stat=buying_stat)


def sample_records(
    settings: Settings,
    limit: int = SAMPLE_LIMIT,
    rng: Optional[random.Random] = None,
) -> List[Record]:
    """
    Generate up to `limit` records for inspection; no database involved.
    """
    rng = rng or random.Random(time.time_ns())
    fake = make_faker(rng, settings.faker_locale)
    config = settings.synthesis()
    count = min(settings.db_records, limit)
    return [generate_record(rng, config, faker=fake) for _ in range(count)]


__all__ = [
    "generate_record",
    "make_faker",
    "random_md5",
    "random_uuid",
    "sample_records",
    "SAMPLE_LIMIT",
]

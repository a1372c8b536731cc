"""
flowyield.runtime.deploy — stand up the three modules and wire them together.

    host = Host(epoch=1)
    p = deploy_pipeline(host, admin="ADMIN")
    host.call("ADMIN", p.oracle, "registerOracle", "REPORTER")

After wiring:

* the calculator trusts the ingest module as its oracle,
* the ingest module relays accepted flows to the calculator,
* the ledger accepts postings only from the calculator,
* the calculator posts positive claim deltas to the ledger.

`admin` administers the ingest and calculator modules and is the ledger's
treasury.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..contracts import DistributionLedger, OracleIngest, YieldCalculator
from ..logging import get_logger
from ..types import Address
from .host import Host

log = get_logger(__name__)

DEFAULT_ORACLE = "oracle-ingest"
DEFAULT_CALCULATOR = "yield-calculator"
DEFAULT_LEDGER = "distribution-ledger"


@dataclass(frozen=True)
class Pipeline:
    admin: Address
    oracle: Address
    calculator: Address
    ledger: Address


def deploy_pipeline(
    host: Host,
    *,
    admin: Address,
    oracle: Address = DEFAULT_ORACLE,
    calculator: Address = DEFAULT_CALCULATOR,
    ledger: Address = DEFAULT_LEDGER,
) -> Pipeline:
    host.deploy(oracle, OracleIngest, deployer=admin)
    host.deploy(calculator, YieldCalculator, deployer=admin)
    host.deploy(ledger, DistributionLedger, deployer=admin)

    wiring = (
        (calculator, "set_oracle", oracle),
        (oracle, "set_yield_calculator", calculator),
        (ledger, "set_yield_calculator", calculator),
        (calculator, "set_distribution_ledger", ledger),
    )
    for target, method, value in wiring:
        host.call(admin, target, method, value).unwrap()
    log.info(
        "pipeline deployed",
        extra={"oracle": oracle, "calculator": calculator, "ledger": ledger},
    )
    return Pipeline(admin=admin, oracle=oracle, calculator=calculator, ledger=ledger)


__all__ = ["DEFAULT_CALCULATOR", "DEFAULT_LEDGER", "DEFAULT_ORACLE", "Pipeline", "deploy_pipeline"]

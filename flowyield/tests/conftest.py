# -*- coding: utf-8 -*-
"""
flowyield.tests.conftest
========================

Pytest fixtures for the accounting modules.

- `host`      a fresh Host at epoch 1000 with default Config (env ignored)
- `oracle`    an OracleIngest deployed standalone (no relay target)
- `calc`      a YieldCalculator whose designated oracle is the ORACLE identity
- `ledger`    a DistributionLedger whose calculator is the CALC identity
- `pipeline`  all three deployed and wired together

Usage (inside a test file):
    def test_example(host, oracle):
        res = host.call(ADMIN, oracle, "registerOracle", REPORTER)
        assert res.ok
"""
from __future__ import annotations

import hashlib
import os

import pytest

from flowyield.config import Config
from flowyield.contracts import DistributionLedger, OracleIngest, YieldCalculator
from flowyield.runtime import Host, Pipeline, deploy_pipeline

os.environ.setdefault("TZ", "UTC")

# --- identities --------------------------------------------------------------

ADMIN = "admin"
REPORTER = "reporter"
ORACLE = "oracle-identity"
CALC = "calculator-identity"
TREASURY = "treasury"
ALICE = "alice"
BOB = "bob"
MALLORY = "mallory"

START_EPOCH = 1000


def source_hash(label: str = "station-1") -> bytes:
    return hashlib.sha3_256(label.encode("utf-8")).digest()


HASH = source_hash()


# --- fixtures ----------------------------------------------------------------


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def host(config: Config) -> Host:
    return Host(epoch=START_EPOCH, config=config)


@pytest.fixture
def oracle(host: Host) -> str:
    host.deploy("ingest", OracleIngest, deployer=ADMIN)
    return "ingest"


@pytest.fixture
def calc(host: Host) -> str:
    host.deploy("calc", YieldCalculator, deployer=ADMIN, oracle=ORACLE)
    return "calc"


@pytest.fixture
def ledger(host: Host) -> str:
    host.deploy("ledger", DistributionLedger, deployer=TREASURY, yield_calculator=CALC)
    return "ledger"


@pytest.fixture
def pipeline(host: Host) -> Pipeline:
    return deploy_pipeline(host, admin=ADMIN)

"""Shared fixtures: fast signer wiring around the scripted tool."""

import random

import pytest
from prometheus_client import CollectorRegistry

from cryptsign.config import SignerConfig
from cryptsign.log import RecordingLogger
from cryptsign.monitoring import MetricsRegistry
from cryptsign.signing import DocumentSigner

from fakes import RecordingSleep


@pytest.fixture
def metrics():
    return MetricsRegistry(registry=CollectorRegistry())


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def config(tmp_path):
    return SignerConfig(
        store="MY",
        tsp_servers=["http://tsp-a.example/tsp", "http://tsp-b.example/tsp"],
        cryptcp_path="/usr/bin/cryptcp",
        certmgr_path="/usr/bin/certmgr",
        tmp_dir=str(tmp_path),
        sign_timeout=30.0,
    )


@pytest.fixture
def make_signer(config, recording_logger, metrics, fake_sleep):
    def factory(runner, **overrides):
        options = dict(
            config=config,
            logger=recording_logger,
            runner=runner,
            rng=random.Random(7),
            metrics=metrics,
            sleep=fake_sleep,
        )
        options.update(overrides)
        return DocumentSigner(**options)
    return factory

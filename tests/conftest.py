import os

import pytest

# Directory name -> marker applied to every test collected beneath it
_LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
    "bdd": pytest.mark.bdd,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="domain.toml overlay to load (test, production, ...)",
    )


def pytest_sessionstart(session):
    """Select the config overlay before any test module imports the domain.

    The ``[test]`` overlay pins the fake gateway and carrier, so the suite
    never reaches Razorpay or Shipmozo unless another ``--env`` is chosen.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Mark tests by the layer directory they live in."""
    for item in items:
        layer = next((part for part in item.path.parts if part in _LAYER_MARKERS), None)
        if layer is None:
            continue

        item.add_marker(_LAYER_MARKERS[layer])
        if layer == "integration":
            # Full request cycle through TestClient
            item.add_marker(pytest.mark.slow)

"""Variant selection through a decision policy.

The engine never picks a variant itself. It describes the experiment as a
declarative policy document (one weighted treatment per variant) and hands
it to an evaluator:

    evaluator.evaluate(policy, context) -> {"items": [{"id": "<variant>"}, ...]}

Only items[0].id is used. Evaluators may be plain or async.

HashingEvaluator is the evaluator shipped with the engine. Assignment is
hash-based: given the same (experiment id, device id) pair the visitor always
gets the same treatment, and the hash output is mapped to treatment buckets
based on the allocation percentages.
"""

import hashlib
import inspect
import logging
import random
from typing import Any, Protocol

from src.ab.errors import DecisionUnavailable
from src.ab.experiment import ExperimentConfig

logger = logging.getLogger(__name__)

POLICY_ID = "content-experimentation-policy"
ROOT_NODE_ID = "n1"
IDENTITY_NAMESPACE = "ECID"
RANDOMIZATION_UNIT = "DEVICE"


class DecisionEvaluator(Protocol):
    def evaluate(self, policy: dict[str, Any], context: dict[str, Any]) -> Any: ...


def build_decision_policy(config: ExperimentConfig) -> dict[str, Any]:
    return {
        "id": POLICY_ID,
        "rootDecisionNodeId": ROOT_NODE_ID,
        "decisionNodes": [{
            "id": ROOT_NODE_ID,
            "type": "EXPERIMENTATION",
            "experiment": {
                "id": config.id,
                "identityNamespace": IDENTITY_NAMESPACE,
                "randomizationUnit": RANDOMIZATION_UNIT,
                "treatments": [
                    {"id": name, "allocationPercentage": variant.weight}
                    for name, variant in config.ordered_variants()
                ],
            },
        }],
    }


async def decide(
    config: ExperimentConfig,
    evaluator: DecisionEvaluator,
    context: dict[str, Any] | None = None,
) -> str:
    """Ask the evaluator which variant to serve.

    Raises:
        DecisionUnavailable: If the evaluator fails or returns no items
    """
    policy = build_decision_policy(config)
    try:
        decision = evaluator.evaluate(policy, context or {})
        if inspect.isawaitable(decision):
            decision = await decision
    except Exception as e:
        raise DecisionUnavailable(config.id, f"evaluator raised {e!r}") from e

    try:
        variant = decision["items"][0]["id"]
    except (KeyError, IndexError, TypeError):
        raise DecisionUnavailable(config.id, f"no items in decision {decision!r}") from None
    if variant not in config.variants:
        raise DecisionUnavailable(config.id, f"unknown variant {variant!r}")
    logger.debug("Decision for experiment '%s': %s", config.id, variant)
    return variant


def bucket_for(experiment_id: str, unit_id: str) -> float:
    """Map (experiment, unit) to a stable value in [0.0, 1.0)."""
    hash_input = f"{experiment_id}:{unit_id}"
    hash_bytes = hashlib.sha256(hash_input.encode()).digest()
    # Use first 8 bytes as unsigned int, normalize to [0, 1)
    return int.from_bytes(hash_bytes[:8], "big") / (2**64)


class HashingEvaluator:
    """Weighted treatment selection, stable per device.

    The device id is read from context["device_id"]. Without one, the bucket
    comes from the evaluator's own random generator.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def evaluate(self, policy: dict[str, Any], context: dict[str, Any]) -> dict[str, Any]:
        nodes = {node["id"]: node for node in policy["decisionNodes"]}
        experiment = nodes[policy["rootDecisionNodeId"]]["experiment"]
        treatments = experiment["treatments"]

        total = sum(float(t["allocationPercentage"]) for t in treatments)
        if total <= 0:
            return {"items": []}

        device_id = context.get("device_id")
        if device_id:
            bucket = bucket_for(experiment["id"], device_id)
        else:
            bucket = self._rng.random()

        # Weights that do not sum to 1 are scaled onto the bucket range
        cumulative = 0.0
        chosen = treatments[-1]
        for treatment in treatments:
            cumulative += float(treatment["allocationPercentage"]) / total
            if bucket < cumulative:
                chosen = treatment
                break
        return {"items": [{"id": chosen["id"]}]}

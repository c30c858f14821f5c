"""Optional features offered by ``plinth init``.

Each feature carries the npm packages it adds to the generated project.  A
feature ``type`` may be composite (``"db:typeorm"``): every ``:``-separated
part becomes a boolean flag in the init context.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from plinth.core.prompts import Question

TSED = "{{ tsed_version }}"


class FeatureValue(BaseModel):
    """One selectable feature."""

    name: str
    type: str
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)


FEATURES: list[FeatureValue] = [
    FeatureValue(name="GraphQL", type="graphql", dependencies={"@tsed/graphql": TSED}),
    FeatureValue(name="Database", type="db"),
    FeatureValue(
        name="Passport.js",
        type="passport",
        dependencies={"@tsed/passport": TSED, "passport": "latest"},
        dev_dependencies={"@types/passport": "latest"},
    ),
    FeatureValue(name="Socket.io", type="socketio", dependencies={"@tsed/socketio": TSED, "socket.io": "latest"}),
    FeatureValue(name="Swagger", type="swagger", dependencies={"@tsed/swagger": TSED}),
    FeatureValue(name="Testing", type="testing"),
]

DB_FEATURES: list[FeatureValue] = [
    FeatureValue(
        name="TypeORM",
        type="db:typeorm",
        dependencies={"@tsed/typeorm": TSED, "typeorm": "latest"},
    ),
    FeatureValue(
        name="Mongoose",
        type="db:mongoose",
        dependencies={"@tsed/mongoose": TSED, "mongoose": "latest"},
    ),
]

TESTING_FEATURES: list[FeatureValue] = [
    FeatureValue(
        name="Jest",
        type="testing:jest",
        dev_dependencies={"jest": "latest", "ts-jest": "latest", "@types/jest": "latest"},
    ),
    FeatureValue(
        name="Mocha + Chai + Sinon",
        type="testing:mocha",
        dev_dependencies={"mocha": "latest", "chai": "latest", "sinon": "latest", "ts-node": "latest"},
    ),
]

FEATURES_BY_TYPE: dict[str, FeatureValue] = {
    f.type: f for f in (*FEATURES, *DB_FEATURES, *TESTING_FEATURES)
}


def to_features(value: Any) -> list[FeatureValue]:
    """Coerce answers (feature objects, dicts or type strings) to features."""
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    features: list[FeatureValue] = []
    for item in items:
        if isinstance(item, FeatureValue):
            features.append(item)
        elif isinstance(item, dict):
            features.append(FeatureValue(**item))
        elif isinstance(item, str):
            if item not in FEATURES_BY_TYPE:
                raise ValueError(f"Unknown feature '{item}'")
            features.append(FEATURES_BY_TYPE[item])
    return features


def _selected(state: Any, feature_type: str) -> bool:
    return any(f.type == feature_type for f in to_features(state.get("features")))


def feature_questions() -> list[Question]:
    """Questions asked by ``plinth init`` to pick features."""
    return [
        Question(
            type="checkbox",
            name="features",
            message="Choose the features needed for your project",
            choices=list(FEATURES),
            filter=to_features,
        ),
        Question(
            type="list",
            name="features_db",
            message="Choose a ORM manager",
            when=lambda state: _selected(state, "db"),
            choices=list(DB_FEATURES),
            default=DB_FEATURES[0],
            filter=to_features,
        ),
        Question(
            type="list",
            name="features_testing",
            message="Choose unit framework",
            when=lambda state: _selected(state, "testing"),
            choices=list(TESTING_FEATURES),
            default=TESTING_FEATURES[0],
            filter=to_features,
        ),
    ]

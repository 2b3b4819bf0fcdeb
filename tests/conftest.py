"""Shared test fixtures: small scene objects and scene files."""

import pytest

from lumina.models import (
    Keyframe,
    ObjectKind,
    PhysicsSettings,
    Property,
    Scene,
    SceneObject,
    TransitionEffect,
)
from lumina.persistence import write_scene


@pytest.fixture
def cube() -> SceneObject:
    """A plain mesh at the origin with no keyframes."""
    return SceneObject(id="cube", kind=ObjectKind.MESH, name="Cube")


@pytest.fixture
def fading_cube() -> SceneObject:
    """A mesh whose opacity goes 0 -> 1 over two seconds, linearly."""
    return SceneObject(
        id="fader",
        kind=ObjectKind.MESH,
        name="Fader",
        keyframes=[
            Keyframe(time=0.0, values={Property.OPACITY: 0.0}),
            Keyframe(time=2.0, values={Property.OPACITY: 1.0}, easing="linear"),
        ],
    )


@pytest.fixture
def camera() -> SceneObject:
    return SceneObject(
        id="cam",
        kind=ObjectKind.CAMERA,
        name="Main Camera",
        position=(0.0, 2.0, 10.0),
        duration=10.0,
        fov=35.0,
    )


@pytest.fixture
def falling_box() -> SceneObject:
    """A dynamic 1m box five metres up."""
    return SceneObject(
        id="box",
        kind=ObjectKind.MESH,
        name="Box",
        position=(0.0, 5.0, 0.0),
        duration=10.0,
        physics=PhysicsSettings(enabled=True),
    )


@pytest.fixture
def ground() -> SceneObject:
    """A static 10m x 1m x 10m slab whose top face sits at y = 0.5."""
    return SceneObject(
        id="ground",
        kind=ObjectKind.MESH,
        name="Ground",
        scale=(10.0, 1.0, 10.0),
        duration=10.0,
        physics=PhysicsSettings(enabled=True, body_type="static"),
    )


@pytest.fixture
def sample_scene(fading_cube, camera, falling_box) -> Scene:
    fading_cube.properties = {Property.COLOR: "#ff8800", Property.METALNESS: 0.5}
    fading_cube.intro = TransitionEffect(type="custom", duration=0.5, scale=0.5, easing="power2.out")
    return Scene(
        objects=[fading_cube, camera, falling_box],
        settings={"background": "#101018"},
        project_name="Sample",
    )


@pytest.fixture
def scene_file(sample_scene, tmp_path) -> str:
    """The sample scene written to disk in the human-friendly layout."""
    return str(write_scene(sample_scene, tmp_path / "scene.yaml"))


@pytest.fixture
def output_dir(tmp_path) -> str:
    """Provide a temporary output directory for each test."""
    return str(tmp_path)

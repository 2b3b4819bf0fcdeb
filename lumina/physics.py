"""
Rigid-body world for physics baking.
Box colliders, impulses, forces and fixed-timestep stepping on numpy.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from lumina.config import GRAVITY, SOLVER_ITERATIONS

logger = logging.getLogger(__name__)

# Euler order matching the editor's rotation convention (intrinsic X, Y, Z)
EULER_ORDER = "XYZ"


@dataclass
class PhysicsConfig:
    """Configuration for physics simulation"""
    gravity: Tuple[float, float, float] = (0.0, GRAVITY, 0.0)
    solver_iterations: int = SOLVER_ITERATIONS

    # Contact response
    default_friction: float = 0.3
    default_restitution: float = 0.0
    restitution_threshold: float = 1.0  # approach speed (m/s) below which contacts do not bounce

    # Positional correction
    penetration_slop: float = 0.001
    correction_percent: float = 0.8


@dataclass
class ContactMaterial:
    """Combined surface response of a pair of bodies"""
    friction: float = 0.3
    restitution: float = 0.0


@dataclass
class RigidBody:
    """A box-shaped rigid body; mass 0 makes it static"""
    id: str
    half_extents: np.ndarray
    mass: float = 1.0
    friction: float = 0.3
    restitution: float = 0.5
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orientation: Rotation = field(default_factory=Rotation.identity)
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    force: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        self.half_extents = np.abs(np.asarray(self.half_extents, dtype=float))
        self.position = np.asarray(self.position, dtype=float)
        self.velocity = np.asarray(self.velocity, dtype=float)
        self.angular_velocity = np.asarray(self.angular_velocity, dtype=float)
        self.force = np.asarray(self.force, dtype=float)

    @classmethod
    def box(
        cls,
        body_id: str,
        scale: Tuple[float, float, float],
        position: Tuple[float, float, float],
        rotation_degrees: Tuple[float, float, float],
        mass: float = 1.0,
        friction: float = 0.3,
        restitution: float = 0.5,
    ) -> "RigidBody":
        """Build a box collider sized to an object's scale"""
        return cls(
            id=body_id,
            half_extents=np.abs(np.asarray(scale, dtype=float)) / 2.0,
            mass=mass,
            friction=friction,
            restitution=restitution,
            position=np.asarray(position, dtype=float),
            orientation=Rotation.from_euler(EULER_ORDER, rotation_degrees, degrees=True),
        )

    @property
    def is_static(self) -> bool:
        return self.mass <= 0

    @property
    def inverse_mass(self) -> float:
        return 0.0 if self.is_static else 1.0 / self.mass

    def world_half_extents(self) -> np.ndarray:
        """Half extents of the axis-aligned box enclosing the rotated collider"""
        return np.abs(self.orientation.as_matrix()) @ self.half_extents

    def euler_degrees(self) -> Tuple[float, float, float]:
        x, y, z = self.orientation.as_euler(EULER_ORDER, degrees=True)
        return (float(x), float(y), float(z))

    def position_tuple(self) -> Tuple[float, float, float]:
        x, y, z = self.position
        return (float(x), float(y), float(z))


@dataclass
class ContactPoint:
    """Overlap between two bodies along one world axis"""
    body1: RigidBody
    body2: RigidBody
    normal: np.ndarray  # from body1 to body2
    penetration: float

    def get_relative_velocity(self) -> np.ndarray:
        return self.body2.velocity - self.body1.velocity


class PhysicsWorld:
    """Fixed-timestep rigid-body world"""

    def __init__(self, config: Optional[PhysicsConfig] = None):
        self.config = config or PhysicsConfig()
        self.gravity = np.asarray(self.config.gravity, dtype=float)
        self.bodies: Dict[str, RigidBody] = {}
        self.contact_materials: Dict[frozenset, ContactMaterial] = {}
        self.default_material = ContactMaterial(
            friction=self.config.default_friction,
            restitution=self.config.default_restitution,
        )
        self.contact_points: List[ContactPoint] = []
        self.time = 0.0
        self.frame = 0

    def add_body(self, body: RigidBody):
        """Add a body to the simulation"""
        self.bodies[body.id] = body
        logger.debug(f"Added body {body.id} to simulation (mass={body.mass})")

    def add_contact_material(self, body1: str, body2: str, material: ContactMaterial):
        """Register the surface response used when two bodies touch"""
        self.contact_materials[frozenset((body1, body2))] = material

    def contact_material(self, body1: str, body2: str) -> ContactMaterial:
        return self.contact_materials.get(frozenset((body1, body2)), self.default_material)

    def add_impulse(self, body_id: str, impulse: np.ndarray):
        """Add an instantaneous change of momentum to a body"""
        body = self._dynamic_body(body_id)
        if body is None:
            return
        body.velocity = body.velocity + np.asarray(impulse, dtype=float) * body.inverse_mass

    def add_force(self, body_id: str, force: np.ndarray):
        """Add a force acting on a body during the next step only"""
        body = self._dynamic_body(body_id)
        if body is None:
            return
        body.force = body.force + np.asarray(force, dtype=float)

    def _dynamic_body(self, body_id: str) -> Optional[RigidBody]:
        if body_id not in self.bodies:
            logger.warning(f"Body {body_id} not found")
            return None
        body = self.bodies[body_id]
        if body.is_static:
            return None
        return body

    def step(self, dt: float):
        """Advance simulation by one time step"""
        # Step 1: Apply gravity and accumulated forces
        self._apply_external_forces(dt)

        # Step 2: Detect collisions
        self.contact_points = self._detect_collisions()

        # Step 3: Solve contact velocities
        self._solve_constraints()

        # Step 4: Integrate positions
        self._integrate_positions(dt)

        # Step 5: Push overlapping bodies apart
        for contact in self._detect_collisions():
            self._correct_position(contact)

        self.time += dt
        self.frame += 1
        if self.frame % 100 == 0:
            logger.debug(f"Physics step {self.frame}: t={self.time:.3f}s, {len(self.contact_points)} contacts")

    def _apply_external_forces(self, dt: float):
        for body in self.bodies.values():
            if body.is_static:
                continue
            body.velocity = body.velocity + (self.gravity + body.force * body.inverse_mass) * dt

    def _detect_collisions(self) -> List[ContactPoint]:
        bodies = list(self.bodies.values())
        contacts = []
        for i, body1 in enumerate(bodies):
            for body2 in bodies[i + 1:]:
                if body1.is_static and body2.is_static:
                    continue
                contact = self._overlap(body1, body2)
                if contact is not None:
                    contacts.append(contact)
        return contacts

    @staticmethod
    def _overlap(body1: RigidBody, body2: RigidBody) -> Optional[ContactPoint]:
        delta = body2.position - body1.position
        overlap = body1.world_half_extents() + body2.world_half_extents() - np.abs(delta)
        if np.any(overlap <= 0):
            return None
        axis = int(np.argmin(overlap))
        normal = np.zeros(3)
        normal[axis] = 1.0 if delta[axis] >= 0 else -1.0
        return ContactPoint(body1=body1, body2=body2, normal=normal, penetration=float(overlap[axis]))

    def _solve_constraints(self):
        for _ in range(max(1, self.config.solver_iterations)):
            for contact in self.contact_points:
                self._solve_contact(contact)

    def _solve_contact(self, contact: ContactPoint):
        body1, body2, n = contact.body1, contact.body2, contact.normal
        inv_sum = body1.inverse_mass + body2.inverse_mass
        if inv_sum == 0:
            return
        vn = float(np.dot(contact.get_relative_velocity(), n))
        if vn >= 0:
            return

        material = self.contact_material(body1.id, body2.id)
        # Restitution only for colliding contacts, resting contacts just stop
        restitution = material.restitution if -vn > self.config.restitution_threshold else 0.0
        lambda_n = -(1.0 + restitution) * vn / inv_sum
        impulse = lambda_n * n
        body1.velocity = body1.velocity - impulse * body1.inverse_mass
        body2.velocity = body2.velocity + impulse * body2.inverse_mass

        # Coulomb friction along the sliding direction
        v_rel = contact.get_relative_velocity()
        tangent = v_rel - np.dot(v_rel, n) * n
        speed = float(np.linalg.norm(tangent))
        if speed < 1e-9:
            return
        tangent /= speed
        lambda_t = min(speed / inv_sum, material.friction * lambda_n)
        body1.velocity = body1.velocity + lambda_t * tangent * body1.inverse_mass
        body2.velocity = body2.velocity - lambda_t * tangent * body2.inverse_mass

    def _integrate_positions(self, dt: float):
        for body in self.bodies.values():
            if body.is_static:
                continue
            body.position = body.position + body.velocity * dt
            if np.any(body.angular_velocity):
                body.orientation = Rotation.from_rotvec(body.angular_velocity * dt) * body.orientation
            body.force = np.zeros(3)

    def _correct_position(self, contact: ContactPoint):
        body1, body2 = contact.body1, contact.body2
        inv_sum = body1.inverse_mass + body2.inverse_mass
        depth = contact.penetration - self.config.penetration_slop
        if inv_sum == 0 or depth <= 0:
            return
        correction = contact.normal * (depth / inv_sum * self.config.correction_percent)
        body1.position = body1.position - correction * body1.inverse_mass
        body2.position = body2.position + correction * body2.inverse_mass

    def get_state(self) -> Dict[str, Any]:
        """Get current simulation state"""
        state: Dict[str, Any] = {
            "time": self.time,
            "frame": self.frame,
            "bodies": {},
            "contacts": len(self.contact_points),
        }
        for body_id, body in self.bodies.items():
            state["bodies"][body_id] = {
                "position": list(body.position_tuple()),
                "rotation": list(body.euler_degrees()),
                "velocity": [float(v) for v in body.velocity],
                "angular_velocity": [float(v) for v in body.angular_velocity],
            }
        return state

"""Periodic assembly of disks around a deformable buried pipe."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TextIO, Union

from . import conffile
from .cell import Mat4, PeriodicCell, Vec2
from .loading import Loading
from .particle import Interaction, InteractionPipe, Particle
from .pipe import Pipe

_COMPONENTS = ("xx", "xy", "yx", "yy")

PathLike = Union[str, Path]


@dataclass
class BuriedPipe:
    """The whole simulation: particles, pipe, periodic cell, loading and parameters."""

    pipe: Pipe = field(default_factory=Pipe)
    particles: list[Particle] = field(default_factory=list)
    interactions: list[Interaction] = field(default_factory=list)
    interactions_pipe: list[InteractionPipe] = field(default_factory=list)
    load: Loading = field(default_factory=Loading)
    cell: PeriodicCell = field(default_factory=PeriodicCell)
    h0: Mat4 = field(default_factory=Mat4)
    sig: Mat4 = field(default_factory=Mat4)

    t: float = 0.0
    tmax: float = 5.0
    dt: float = 1e-6
    inter_close_c: float = 0.0
    inter_close: float = 0.01
    d_verlet: float = 0.0
    inter_out_c: float = 0.0
    inter_out: float = 0.1
    inter_hist_c: float = 0.0
    inter_hist: float = 0.25
    density: float = 2700.0
    kn: float = 1e4
    kt: float = 1e4
    damp_rate: float = 0.95
    v_barrier: float = 0.0
    numerical_damping_coeff: float = 0.0
    v_barrier_expo: float = 2.0
    mu: float = 0.8
    iconf: int = 0
    constrained_in_frame: int = 0

    radius_min: float = 0.0
    radius_max: float = 0.0
    radius_mean: float = 0.0
    fn_max: float = 0.0

    # ------------------------------------------------------------------ files

    def save_conf(self, path: PathLike) -> None:
        """Write the current state to a configuration file."""
        conffile.save_conf(self, path)

    def load_conf(self, path: PathLike) -> None:
        """Read the state from a configuration file."""
        conffile.load_conf(self, path)

    def record(self, stream: TextIO) -> None:
        """Write one line: t, h (4), stress (4), Green strain (4), q and p."""
        f = self.cell.h @ self.h0.inverse()
        e = 0.5 * (f.transposed() @ f - Mat4.identity())
        s = self.sig
        a = s.xx - s.yy
        b = s.xy + s.yx
        q = math.sqrt(0.5 * (a * a + b * b))
        p = 0.5 * (s.xx + s.yy)
        values = [self.t, *self.cell.h, *s, *e, q, p]
        stream.write(" ".join(format(v, "g") for v in values) + "\n")
        self.inter_out_c = 0.0

    # -------------------------------------------------------- neighbour lists

    def reset_close_list(self, dmax: float) -> None:
        """Rebuild the particle pairs closer than dmax, keeping known forces."""
        backup = {(c.i, c.j): (c.fn, c.ft) for c in self.interactions}
        h = self.cell.h
        contacts = []
        for i, pi in enumerate(self.particles):
            for j in range(i + 1, len(self.particles)):
                pj = self.particles[j]
                sij = pj.pos - pi.pos
                sij = Vec2(sij.x - math.floor(sij.x + 0.5), sij.y - math.floor(sij.y + 0.5))
                branch = h @ sij
                reach = dmax + pi.radius + pj.radius
                if branch.norm2() <= reach * reach:
                    m = (pi.mass * pj.mass) / (pi.mass + pj.mass)
                    damp = self.damp_rate * 2.0 * math.sqrt(self.kn * m)
                    contact = Interaction(i=i, j=j, damp=damp)
                    if (i, j) in backup:
                        contact.fn, contact.ft = backup[(i, j)]
                    contacts.append(contact)
        self.interactions = contacts

    def reset_close_list_pipe(self, dmax: float) -> None:
        """Rebuild the particle/pipe-side pairs closer than dmax, keeping known forces.

        The pipe is assumed far from the periodic boundaries: no images are considered.
        """
        backup = {(c.i, c.inode): (c.fn, c.ft) for c in self.interactions_pipe}
        pipe = self.pipe
        pipe.update(self.cell.h)
        h = self.cell.h
        contacts = []
        for i, p in enumerate(self.particles):
            for inode, (node, u, length) in enumerate(zip(pipe.pos, pipe.u, pipe.lengths)):
                n = u.quarter_right_turned()
                sij = h @ (node - p.pos)
                distn = abs(sij.dot(n)) - p.radius - pipe.node_radius
                projt = -sij.dot(u)
                if (
                    projt >= -pipe.node_radius - dmax
                    and projt < length + pipe.node_radius + dmax
                    and distn <= dmax
                ):
                    m = (p.mass * pipe.node_mass) / (p.mass + pipe.node_mass)
                    damp = self.damp_rate * 2.0 * math.sqrt(self.kn * m)
                    contact = InteractionPipe(i=i, inode=inode, damp=damp)
                    if (i, inode) in backup:
                        contact.fn, contact.ft = backup[(i, inode)]
                    contacts.append(contact)
        self.interactions_pipe = contacts

    # ----------------------------------------------------------------- forces

    def _contact_law(self, contact: Union[Interaction, InteractionPipe], vn: float, vt: float, dn: float) -> float:
        """Set fn (elastic + viscous) and ft (Coulomb-limited) on a contact; return ft."""
        fne = -self.kn * dn
        contact.fn = fne - contact.damp * vn
        ft = contact.ft - self.kt * self.dt * vt
        ftest = self.mu * fne
        if abs(ft) > ftest:
            ft = ftest if ft > 0.0 else -ftest
        contact.ft = ft
        return ft

    def _add_stress(self, f: Vec2, branch: Vec2) -> None:
        self.sig.xx += f.x * branch.x
        self.sig.xy += f.x * branch.y
        self.sig.yx += f.y * branch.x
        self.sig.yy += f.y * branch.y

    def compute_forces_particle_particle(self) -> None:
        """Contact forces between particles, accumulated on particles and into the stress."""
        h, vh = self.cell.h, self.cell.vh
        for contact in self.interactions:
            pi = self.particles[contact.i]
            pj = self.particles[contact.j]
            sij = pj.pos - pi.pos
            period = Vec2(math.floor(sij.x + 0.5), math.floor(sij.y + 0.5))
            branch = h @ (sij - period)
            total = pi.radius + pj.radius
            if branch.norm2() > total * total:
                contact.fn = 0.0
                contact.ft = 0.0
                continue

            length = branch.norm()
            n = branch.normalized()
            t = Vec2(-n.y, n.x)
            real_vel = h @ (pj.vel - pi.vel) + vh @ period

            dn = length - total
            bi = pi.radius + 0.5 * dn
            bj = pj.radius + 0.5 * dn
            vt = real_vel.dot(t) - pi.vrot * bi - pj.vrot * bj
            ft = self._contact_law(contact, real_vel.dot(n), vt, dn)

            f = contact.fn * n + ft * t
            pi.force = pi.force - f
            pj.force = pj.force + f
            pi.moment -= ft * bi
            pj.moment -= ft * bj
            self._add_stress(f, branch)

    def compute_forces_particle_pipe(self) -> None:
        """Contact forces between particles and pipe sides or their starting vertex disks."""
        h = self.cell.h
        pipe = self.pipe
        n_nodes = len(pipe.pos)
        for contact in self.interactions_pipe:
            p = self.particles[contact.i]
            inode = contact.inode
            u = pipe.u[inode]
            length = pipe.lengths[inode]
            branch = h @ (pipe.pos[inode] - p.pos)

            proj = -branch.dot(u)
            contact.proj_div_L = proj / length
            n = u.quarter_left_turned()
            dn = abs(branch.dot(n)) - p.radius - pipe.node_radius

            if dn < 0.0 and 0.0 <= proj <= length:
                xi_next = proj / length
                xi = 1.0 - xi_next
                inext = (inode + 1) % n_nodes
                branch = h @ ((xi * pipe.pos[inode] + xi_next * pipe.pos[inext]) - p.pos)
                real_vel = h @ ((xi * pipe.vel[inode] + xi_next * pipe.vel[inext]) - p.vel)
                bi = p.radius + 0.5 * dn
                ft = self._contact_law(contact, real_vel.dot(n), real_vel.dot(u) - p.vrot * bi, dn)

                f = contact.fn * n + ft * u
                p.force = p.force - f
                pipe.forces[inode] = pipe.forces[inode] + xi * f
                pipe.forces[inext] = pipe.forces[inext] + xi_next * f
                p.moment -= ft * bi
                self._add_stress(f, branch)

            elif proj < 0.0:
                total = p.radius + pipe.node_radius
                if branch.norm2() <= total * total:
                    length_b = branch.norm()
                    nv = branch.normalized()
                    t = Vec2(-nv.y, nv.x)
                    real_vel = h @ (pipe.vel[inode] - p.vel)
                    dnv = length_b - total
                    bi = p.radius + 0.5 * dnv
                    ft = self._contact_law(contact, real_vel.dot(nv), real_vel.dot(t) - p.vrot * bi, dnv)

                    f = contact.fn * nv + ft * t
                    p.force = p.force - f
                    pipe.forces[inode] = pipe.forces[inode] + f
                    p.moment -= ft * bi
                    self._add_stress(f, branch)

            else:
                contact.fn = 0.0
                contact.ft = 0.0

    def compute_forces_internal_pipe(self) -> None:
        """Beam-like stretching and bending forces between pipe nodes."""
        pipe = self.pipe
        count = len(pipe.pos)
        for i in range(count):
            inext = (i + 1) % count
            iprev = (i - 1) % count

            fn = -pipe.k_stretch * (pipe.lengths[i] - pipe.length0)
            f = fn * pipe.u[i]
            pipe.forces[i] = pipe.forces[i] - f
            pipe.forces[inext] = pipe.forces[inext] + f

            moment = pipe.k_bend * (pipe.angles[i] - pipe.angle0)
            pipe.moments[i] = moment

            finc_next = (0.5 * moment / pipe.lengths[i]) * pipe.u[i].quarter_left_turned()
            pipe.forces[inext] = pipe.forces[inext] + finc_next
            pipe.forces[i] = pipe.forces[i] - finc_next

            finc_prev = (0.5 * moment / pipe.lengths[iprev]) * pipe.u[iprev].quarter_left_turned()
            pipe.forces[iprev] = pipe.forces[iprev] + finc_prev
            pipe.forces[i] = pipe.forces[i] - finc_prev

    def accelerations(self) -> None:
        """Compute all forces, then particle, pipe-node and cell accelerations."""
        for p in self.particles:
            p.force = Vec2()
            p.moment = 0.0
        pipe = self.pipe
        pipe.forces = [Vec2() for _ in pipe.forces]
        pipe.moments = [0.0 for _ in pipe.forces]
        self.sig = Mat4()

        self.compute_forces_particle_particle()
        self.compute_forces_particle_pipe()
        self.compute_forces_internal_pipe()

        h = self.cell.h
        self.sig = self.sig * (1.0 / h.det())

        damping = self.numerical_damping_coeff
        factor_minus = 1.0 - damping
        factor_plus = 1.0 + damping
        if damping > 0.0:
            for p in self.particles:
                fx = p.force.x * (factor_minus if p.force.x * p.vel.x > 0.0 else factor_plus)
                fy = p.force.y * (factor_minus if p.force.y * p.vel.y > 0.0 else factor_plus)
                p.force = Vec2(fx, fy)

        hinv = h.inverse()
        for p in self.particles:
            p.acc = hinv @ (p.force / p.mass)
            p.arot = p.moment / p.inertia

        if pipe.forces:
            inv_mass = 1.0 / pipe.node_mass
            pipe.acc = [hinv @ (force * inv_mass) for force in pipe.forces]

        s, ls = self.sig, self.load.sig
        residuals = {
            "xx": (s.xx - ls.xx) * h.yy - (s.yx - ls.yx) * h.xy,
            "xy": (s.xy - ls.xy) * h.yy - (s.yy - ls.yy) * h.xy,
            "yx": (s.yx - ls.yx) * h.xx - (s.xx - ls.xx) * h.yx,
            "yy": (s.yy - ls.yy) * h.xx - (s.xy - ls.xy) * h.yx,
        }
        for comp, residual in residuals.items():
            if not getattr(self.load.drive, comp):
                continue
            a = residual / self.cell.mass
            if damping > 0.0:
                a *= factor_minus if a * getattr(self.cell.vh, comp) > 0.0 else factor_plus
            setattr(self.cell.ah, comp, a)

    # ------------------------------------------------------------ integration

    def _wrap_into_frame(self, p: Particle) -> None:
        h, vh = self.cell.h, self.cell.vh
        hinv: Optional[Mat4] = None
        x, y = p.pos
        vel = p.vel

        def shifted(v: Vec2, shift: Vec2) -> Vec2:
            nonlocal hinv
            if hinv is None:
                hinv = h.inverse()
            return hinv @ (h @ v + vh @ shift)

        while x < 0.0:
            x += 1.0
            vel = shifted(vel, Vec2(1.0, 0.0))
        while x > 1.0:
            x -= 1.0
            vel = shifted(vel, Vec2(-1.0, 0.0))
        while y < 0.0:
            y += 1.0
            vel = shifted(vel, Vec2(0.0, 1.0))
        while y > 1.0:
            y -= 1.0
            vel = shifted(vel, Vec2(0.0, -1.0))
        p.pos = Vec2(x, y)
        p.vel = vel

    def integrate(self, directory: PathLike = ".") -> None:
        """Run velocity-Verlet steps until t exceeds tmax, writing conf files and output.txt."""
        folder = Path(directory)
        dt = self.dt
        dt_2 = 0.5 * dt
        dt2_2 = 0.5 * dt * dt

        self.reset_close_list(self.d_verlet)
        self.reset_close_list_pipe(self.d_verlet)
        self.save_conf(folder / f"conf{self.iconf}")

        with open(folder / "output.txt", "w", encoding="utf-8") as out:
            self.record(out)

            while self.t <= self.tmax:
                self.load.servo(self.cell)

                for p in self.particles:
                    p.pos = p.pos + dt * p.vel + dt2_2 * p.acc
                    if self.constrained_in_frame == 1:
                        self._wrap_into_frame(p)
                    p.vel = p.vel + dt_2 * p.acc
                    p.rot += dt * p.vrot + dt2_2 * p.arot
                    p.vrot += dt_2 * p.arot

                pipe = self.pipe
                pipe.pos = [x + dt * v + dt2_2 * a for x, v, a in zip(pipe.pos, pipe.vel, pipe.acc)]
                pipe.vel = [v + dt_2 * a for v, a in zip(pipe.vel, pipe.acc)]

                cell, load = self.cell, self.load
                for comp in _COMPONENTS:
                    h = getattr(cell.h, comp)
                    if getattr(load.drive, comp):
                        vh = getattr(cell.vh, comp)
                        ah = getattr(cell.ah, comp)
                        setattr(cell.h, comp, h + dt * vh + dt2_2 * ah)
                        setattr(cell.vh, comp, vh + dt_2 * ah)
                    else:
                        imposed = getattr(load.vh, comp)
                        setattr(cell.h, comp, h + dt * imposed)
                        setattr(cell.vh, comp, imposed)
                        setattr(cell.ah, comp, 0.0)

                pipe.update(cell.h)
                self.accelerations()

                if self.v_barrier > 0.0:
                    xx_ratio = abs(cell.vh.xx / self.v_barrier) ** self.v_barrier_expo
                    cell.ah.xx *= (1.0 - xx_ratio) / (1.0 + xx_ratio)
                    yy_ratio = abs(cell.vh.yy / self.v_barrier) ** self.v_barrier_expo
                    cell.ah.yy *= (1.0 - yy_ratio) / (1.0 + yy_ratio)

                vsum = Vec2()
                for p in self.particles:
                    p.vel = p.vel + dt_2 * p.acc
                    vsum = vsum + p.vel
                    p.vrot += dt_2 * p.arot
                pipe.vel = [v + dt_2 * a for v, a in zip(pipe.vel, pipe.acc)]
                vsum = sum(pipe.vel, vsum)
                bodies = len(self.particles) + len(pipe.pos)
                if bodies:
                    vmean = vsum / bodies
                    for p in self.particles:
                        p.vel = p.vel - vmean
                    pipe.vel = [v - vmean for v in pipe.vel]

                for comp in _COMPONENTS:
                    if getattr(load.drive, comp):
                        setattr(cell.vh, comp, getattr(cell.vh, comp) + dt_2 * getattr(cell.ah, comp))

                self.inter_hist_c += dt
                self.inter_out_c += dt
                self.inter_close_c += dt
                self.t += dt

                if self.inter_close_c >= self.inter_close - dt_2:
                    self.reset_close_list(self.d_verlet)
                    self.reset_close_list_pipe(self.d_verlet)
                    self.inter_close_c = 0.0

                if self.inter_out_c >= self.inter_out - dt_2:
                    self.record(out)

                if self.inter_hist_c >= self.inter_hist - dt_2:
                    self.iconf += 1
                    print(f"iconf = {self.iconf}, Time = {self.t:g}")
                    self.save_conf(folder / f"conf{self.iconf}")
                    self.inter_hist_c = 0.0
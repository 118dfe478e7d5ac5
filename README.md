# buriedpipe

Two-dimensional discrete-element simulation of a deformable pipe buried in a
granular material. The soil is a packing of frictional disks inside a
periodic cell whose shape is driven by a stress or velocity loading; the pipe
is a closed ring of nodes joined by stretching and bending springs. Time
integration uses the velocity-Verlet scheme.

## Installation

```
pip install .
```

Install the test extra to run the tests:

```
pip install ".[test]"
pytest
```

## Command line

Preparing a sample reads the parameters from `prepa.txt` in the current
directory and writes the starting configuration to `input.txt`:

```
buriedpipe
```

Running a simulation from a configuration file, in the current directory:

```
buriedpipe input.txt
```

The run saves the configuration as `conf<iconf>` at the start and then as
`conf1`, `conf2`, ... every `interHist` of simulated time, until `t` passes
`tmax`. It writes `output.txt` afresh: one line at the start and then one
every `interOut`, holding the time, the cell shape `h` (4 values), the
internal stress (4 values), the Green strain relative to `h0` (4 values),
the deviatoric stress `q` and the mean pressure `p`.

If a file cannot be read or is not understood, the command prints the
reason to standard error and exits with status 1.

### prepa.txt

One value per line, each followed by an optional description that is
echoed with the value; blank lines are skipped. The values come in this
order: number of disks per row, disk radius, radius spread, pipe external
radius, pipe thickness, number of pipe nodes, out-of-plane pipe length,
yield stress, Young modulus, Poisson ratio, pipe density, maximum initial
velocity, confining pressure, disk density, `kn`, `kt/kn`, damping rate,
friction coefficient `mu`, time step, final time, and the intervals for
neighbour-list updates, output lines and configuration files.

Disk masses are computed with the density in force when the disks are laid
(2700 by default); the disk density read later from the file is the one
saved with the configuration. The sample is put under isostatic compression
at the confining pressure, with particles kept in the cell frame and a
numerical damping coefficient of 0.7.

## Configuration files

A configuration file starts with the header `BuriedPipe 2025`, followed by
keyword/value entries (`t`, `tmax`, `dt`, `kn`, `h`, `Load`, ...) and the
`Pipe`, `Particles`, `Interactions` and `InteractionsPipe` sections.
Contacts with a negligible normal force are not saved. `load_conf` raises
`buriedpipe.conffile.ConfFormatError` for a wrong header, an unknown
keyword or loading command, or a malformed value.

## Library use

```python
from buriedpipe.simulation import BuriedPipe

sim = BuriedPipe()
sim.load_conf("conf3")
sim.accelerations()
print(sim.t, sim.sig)
```

`BuriedPipe` also provides `save_conf`, `record`, `reset_close_list`,
`reset_close_list_pipe`, the `compute_forces_*` methods and
`integrate(directory)`.

The building blocks live in their own modules:

- `buriedpipe.cell` — `Vec2`, `Mat4`, `PeriodicCell` and
  `angle_between_vectors`
- `buriedpipe.particle` — `Particle`, `Interaction`, `InteractionPipe`
- `buriedpipe.loading` — `Loading` with `biaxial_compression`,
  `isostatic_compression`, `simple_shear` and `velocity_control`, and
  `Loading.from_command` to rebuild one from its stored command
- `buriedpipe.pipe` — the `Pipe` ring
- `buriedpipe.conffile` — `save_conf` and `load_conf`
- `buriedpipe.sample` — `set_sample(sim, path, rng)` to build a sample from
  a parameter file
- `buriedpipe.run` — `main`, the command-line entry
- `buriedpipe.zones` — stress and pressure per particle
  (`compute_particle_data`) and in six rings of zones around the pipe
  (`material_zones`, with `K = sxx/syy`)
- `buriedpipe.pipeplot` — axial force, bending moment and external hoop
  stress along the pipe (`pipe_node_data`), periodic ghost positions
  (`ghost_positions`) and the bounding box of the cell (`fit_view`)

## What it does not do

There is no interactive viewer: `buriedpipe.zones` and
`buriedpipe.pipeplot` compute the quantities to display (zone stresses,
pipe section forces, ghost images, view bounds), but nothing draws them.
Pipe plasticity (the yield moment) is stored but not applied, and the pipe
has no internal pressure.
"""
Batch runner: drives a Channel frame by frame and writes the history to HDF5.
"""

import os

import h5py
import numpy as np
from tqdm import tqdm

from .channel import Channel
from .data_file import DataFile


class FrameRunner:
    """Runs a channel for a fixed number of host frames.

    Attributes:
        channel: Initialised Channel
        frame_dt: Frame length
        final_time: End time
        current_time: Current simulation time
        n_probes: Number of measurement probes
        probes_ref: Reference names of the probes
        probes_pos: Positions of the probes along the channel axis
        probes_indices: Cell indices of the probes
    """

    def __init__(self, data_file: DataFile, channel: Channel = None):
        self._DF = data_file
        if channel is None:
            channel = data_file.build_channel()
        if not channel.initialised:
            channel.initialise(verbosity=0)
            data_file.apply_initial_states(channel)
        self.channel = channel

        self.frame_dt = data_file.frame_dt
        self.final_time = data_file.final_time
        self.current_time = 0.0

        self.n_probes = data_file.n_probes
        self.probes_ref = data_file.probes_references.copy()
        self.probes_pos = data_file.probes_positions.copy()
        self.probes_indices = [0] * self.n_probes

    @property
    def n_frames(self) -> int:
        return int(round(self.final_time / self.frame_dt))

    def build_probes_cell_indices(self):
        """Nearest cell centre of each probe: index = argmin_i |x_i - x_probe|."""
        cell_centers = self.channel.mesh.get_cell_centers()
        for i in range(self.n_probes):
            self.probes_indices[i] = int(np.argmin(np.abs(cell_centers - self.probes_pos[i])))

    def run(self, verbosity: int = 1, progress: bool = True):
        """Advance every frame and collect snapshots, substep counts and probe series.

        Returns:
            dict: ``h``, ``q`` and ``time`` snapshots every ``save_frequency``
            frames (initial state included), ``substeps`` per frame and
            ``probes`` (reference -> depth series, one value per frame plus
            the initial one)
        """
        sim = self.channel.simulation
        self.build_probes_cell_indices()

        n_frames = self.n_frames
        save_every = max(1, self._DF.save_frequency)
        n_saves = n_frames // save_every + 1
        n_cells = sim.num_cells

        solution_h = np.zeros((n_saves, n_cells))
        solution_q = np.zeros((n_saves, n_cells))
        solution_time = np.zeros(n_saves)
        substeps = np.zeros(n_frames, dtype=np.int64)
        probes = np.zeros((self.n_probes, n_frames + 1))

        solution_h[0, :] = sim.h
        solution_q[0, :] = sim.q
        solution_time[0] = self.current_time
        probes[:, 0] = sim.h[self.probes_indices]

        save_idx = 1
        pbar = tqdm(total=n_frames, desc="Solving", unit="frames", disable=not progress,
                    bar_format='{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]')

        for n in range(1, n_frames + 1):
            self.channel.process(self.frame_dt)
            self.current_time += self.frame_dt
            pbar.update(1)

            substeps[n - 1] = sim.last_substeps
            probes[:, n] = sim.h[self.probes_indices]
            if n % save_every == 0 and save_idx < n_saves:
                solution_h[save_idx, :] = sim.h
                solution_q[save_idx, :] = sim.q
                solution_time[save_idx] = self.current_time
                save_idx += 1

        pbar.close()

        if verbosity > 0:
            stats = self.channel.stats()
            print(f"Max wave speed       = {stats['max_speed']:.4f}")
            print(f"Max depth            = {stats['max_depth']:.4f}")
            print(f"Substeps (last)      = {stats['substeps']}")

        return {
            "h": solution_h[:save_idx],
            "q": solution_q[:save_idx],
            "time": solution_time[:save_idx],
            "substeps": substeps,
            "probes": {ref: probes[i] for i, ref in enumerate(self.probes_ref)},
        }

    def output_path(self, output_filename: str = None) -> str:
        """Result file path, always inside ``results_dir``."""
        if output_filename is None:
            return os.path.join(self._DF.results_dir, "solution_channel.h5")
        return os.path.join(self._DF.results_dir, os.path.basename(output_filename))

    def write(self, results: dict, output_filename: str = None, verbosity: int = 1) -> str:
        """Write the results of ``run`` to an HDF5 file and return its path."""
        h5_filename = self.output_path(output_filename)
        os.makedirs(self._DF.results_dir, exist_ok=True)
        mesh = self.channel.mesh
        sim = self.channel.simulation

        if verbosity > 0:
            print("Writing results to file...")
        with h5py.File(h5_filename, 'w') as h5f:
            h5f.create_dataset('mesh/x', data=mesh.get_cell_centers())
            h5f.create_dataset('mesh/bed', data=mesh.bed_positions)
            h5f.attrs['dx'] = mesh.get_space_step()
            h5f.attrs['n_cells'] = mesh.get_number_of_cells()
            h5f.attrs['channel_length'] = mesh.length
            h5f.attrs['channel_width'] = mesh.width

            h5f.attrs['final_time'] = self.final_time
            h5f.attrs['frame_dt'] = self.frame_dt
            h5f.attrs['n_frames'] = self.n_frames
            h5f.attrs['save_frequency'] = max(1, self._DF.save_frequency)
            h5f.attrs['flux_scheme'] = sim.flux.get_flux_name()
            h5f.attrs['substeps_max'] = sim.params.substeps_max
            h5f.attrs['cfl'] = sim.params.cfl
            h5f.attrs['gravity'] = sim.params.g
            h5f.attrs['manning_n'] = sim.params.manning_n
            h5f.attrs['bed_slope'] = sim.params.bed_slope
            h5f.attrs['min_depth'] = sim.params.min_depth
            h5f.attrs['outflow_mode'] = type(sim.boundary.outflow).__name__

            h5f.create_dataset('solution/h', data=results["h"])
            h5f.create_dataset('solution/q', data=results["q"])
            h5f.create_dataset('solution/time', data=results["time"])
            h5f.create_dataset('solution/substeps', data=results["substeps"])

            for ref, series in results["probes"].items():
                h5f.create_dataset(f'probes/{ref}', data=series)

        if verbosity > 0:
            print(f"Results saved to: {h5_filename}")
        return h5_filename

    def solve(self, verbosity: int = 1, output_filename: str = None) -> str:
        """Run every frame and save the history; returns the HDF5 path."""
        results = self.run(verbosity=verbosity)
        return self.write(results, output_filename, verbosity=verbosity)

#!/usr/bin/env python3
"""
qm-braket — command-line demos of eigenbasis evolution.

Usage:
    qm-braket isw [--width W] [--initial-width W0] [--states N] [--step S]
    qm-braket harmonic [--omega W] [--half-width L] [--offset X] [--states N] [--times T ...]
    qm-braket two-state [--level-1 E1] [--level-2 E2] [--coupling V] [--times T ...]
    qm-braket --help

Options (all commands):
    --parallel           Use the threaded inner-product strategy
    --workers N          Number of chunks for the threaded strategy
    -v, --verbose        Debug logging (per-coefficient output)
"""

import argparse
import logging
import sys
import time

import numpy as np

import braket
from braket import Ket
from discrete_system import TwoState
from domains import DomainSection1D
from potentials import HarmonicWell, InfiniteSquareWell
from rendering import probability_render_estimate, sample_polyline
from signatures import WF_1SPACE_1TIME

logger = logging.getLogger("qm-braket")


def _print_coefficients(coeffs):
    for n, c in enumerate(coeffs, start=1):
        print(f"  c[{n:2d}] = {c.real:+.5f} {c.imag:+.5f}i   |c|^2 = {abs(c) ** 2:.5f}")
    print(f"  Σ|c|^2 = {float(np.sum(np.abs(coeffs) ** 2)):.5f}")


def cmd_isw(args):
    """Sudden expansion of an infinite square well."""
    well = InfiniteSquareWell(width=args.width, mass=args.mass, hbar=args.hbar, step_size=args.step)
    initial = well.expansion_state(args.initial_width, 1)

    start = time.perf_counter()
    coeffs = well.coefficients(initial, 0.0, args.states)
    evolved = well.evolution(initial, 0.0, args.states)
    t_project = time.perf_counter() - start

    print(f"Infinite square well: width {args.width} (from {args.initial_width}), {args.states} states")
    _print_coefficients(coeffs)

    start = time.perf_counter()
    again = well.coefficients(evolved, 0.0, args.states)
    t_reproject = time.perf_counter() - start
    err = float(np.max(np.abs(again - coeffs)))

    print(f"Re-projection max |Δc| = {err:.2e}")
    print(f"Timings: project {t_project * 1000:.1f}ms, re-project {t_reproject * 1000:.1f}ms")
    return 0


def cmd_harmonic(args):
    """Displaced box state evolved in a harmonic well."""
    well = HarmonicWell(
        omega=args.omega, mass=args.mass, step_size=args.step, hbar=args.hbar, half_width=args.half_width
    )
    box = Ket.new(
        lambda x, t: np.ones_like(x, dtype=np.complex64),
        DomainSection1D(-1.0, 1.0, args.step),
        WF_1SPACE_1TIME,
    ).translate_space(args.offset)

    start = time.perf_counter()
    evolved = well.evolution(box, 0.0, args.states)
    logger.info(f"Evolution built in {(time.perf_counter() - start) * 1000:.1f}ms, domain {evolved.subdomain}")

    print(f"Harmonic well: ω={args.omega}, {args.states} states, box displaced by {args.offset}")
    for t in args.times:
        verts = sample_polyline(evolved, t, "density", step_size=args.render_step)
        prob = probability_render_estimate(evolved, t, step_size=args.render_step, warn_if_below=0.0)
        peak = verts[int(np.argmax(verts[:, 1]))]
        print(
            f"  t={t:6.3f}  P={prob['render_estimate_probability']:.4f}  "
            f"peak |ψ|^2={peak[1]:.4f} at x={peak[0]:+.3f}"
        )
    return 0


def cmd_two_state(args):
    """Population of level 0 for a system prepared in level 0."""
    system = TwoState(level_1=args.level_1, level_2=args.level_2, coupling=args.coupling, hbar=args.hbar)
    initial = system.state(1.0, 0.0)
    evolved = system.evolution(initial, 0.0)

    print(f"Two-state system: E = {system.energy(0):.4f}, {system.energy(1):.4f}")
    for t in args.times:
        p0 = float(np.real(evolved.p(0, t)))
        print(f"  t={t:6.3f}  P(0)={p0:.4f}  P(1)={1.0 - p0:.4f}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Eigenbasis evolution demos")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--parallel', action='store_true', help='Threaded inner products')
    common.add_argument('--workers', type=int, default=None, help='Chunks for --parallel')
    common.add_argument('-v', '--verbose', action='store_true')
    common.add_argument('--hbar', type=float, default=1.0)

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    isw_parser = subparsers.add_parser('isw', parents=[common], help='Infinite square well expansion')
    isw_parser.add_argument('--width', type=float, default=2.0)
    isw_parser.add_argument('--initial-width', type=float, default=1.0)
    isw_parser.add_argument('--mass', type=float, default=1.0)
    isw_parser.add_argument('--states', type=int, default=10)
    isw_parser.add_argument('--step', type=float, default=0.001)

    hw_parser = subparsers.add_parser('harmonic', parents=[common], help='Harmonic well evolution')
    hw_parser.add_argument('--omega', type=float, default=10.0)
    hw_parser.add_argument('--mass', type=float, default=1.0)
    hw_parser.add_argument('--half-width', type=float, default=3.0)
    hw_parser.add_argument('--offset', type=float, default=1.5)
    hw_parser.add_argument('--states', type=int, default=30)
    hw_parser.add_argument('--step', type=float, default=0.001)
    hw_parser.add_argument('--render-step', type=float, default=0.01)
    hw_parser.add_argument('--times', type=float, nargs='+', default=[0.0, 0.1, 0.2, 0.3])

    ts_parser = subparsers.add_parser('two-state', parents=[common], help='Two-level system')
    ts_parser.add_argument('--level-1', type=float, default=1.0)
    ts_parser.add_argument('--level-2', type=float, default=-1.0)
    ts_parser.add_argument('--coupling', type=complex, default=0.5)
    ts_parser.add_argument('--times', type=float, nargs='+', default=[0.0, 0.5, 1.0, 1.5, 2.0])

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    if args.parallel:
        braket.set_default_strategy(braket.ThreadedStrategy(max_workers=args.workers))

    commands = {
        'isw': cmd_isw,
        'harmonic': cmd_harmonic,
        'two-state': cmd_two_state,
    }

    try:
        return commands[args.command](args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())

"""
Benchmark CLI Commands for PyFastImg

Command line interface running the registered benchmark pipelines and
reporting their best wall-clock time.

Author: B.G.
"""

import logging
import os

import click
import numpy as np
from PIL import Image

from .. import constants as cte
from .. import runtime
from ..bench import suites
from ..errors import PyFastImgError
from ..filters.color import unpack_array


def _to_image(array):
    """PIL image from a realized 2D output (packed uint32 pixels become RGBA)."""
    if array.dtype == np.uint32:
        return Image.fromarray(unpack_array(array))
    data = np.nan_to_num(array.astype(np.float64))
    lo, hi = data.min(), data.max()
    if hi == lo:
        normalized = np.zeros_like(data)
    else:
        normalized = (data - lo) / (hi - lo)
    return Image.fromarray((normalized * 255).astype(np.uint8))


def _save_png(result, directory):
    os.makedirs(directory, exist_ok=True)
    saved = []
    for n, buf in enumerate(result.outputs):
        array = buf.host
        if array.ndim != 2:
            continue
        path = os.path.join(directory, f"{result.name}_{n}.png")
        _to_image(array).save(path)
        saved.append(path)
    return saved


@click.command()
@click.argument("names", nargs=-1)
@click.option("--width", type=int, default=None, help="Override the benchmark width")
@click.option("--height", type=int, default=None, help="Override the benchmark height")
@click.option("--samples", type=int, default=cte.BENCH_SAMPLES, show_default=True, help="Timed samples")
@click.option("--warmup", type=int, default=cte.BENCH_WARMUP, show_default=True, help="Discarded warm-up samples")
@click.option("--arch", default="gpu", show_default=True, help="Taichi arch (gpu, cuda, vulkan, cpu, ...)")
@click.option(
    "--backend",
    type=click.Choice(["taichi", "host"]),
    default="taichi",
    show_default=True,
    help="Backend realizing the pipelines (taichi lowers linear stencils only)",
)
@click.option(
    "--save-png",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory receiving a PNG of every 2D output",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def bench(names, width, height, samples, warmup, arch, backend, save_png, verbose):
    """
    Run benchmark pipelines and print their best time.

    NAMES: Benchmarks to run (all registered benchmarks when omitted)

    Benchmarks needing an accelerator are skipped when none is available;
    the command still exits successfully.

    With the taichi backend only the linear float32 stencils run as Taichi
    kernels; bilateral, a-trous, tone mapping, corner and reduction nodes are
    evaluated with NumPy on the host, and their times reflect that.

    Examples:

        # Every benchmark on the default GPU
        pfi-bench

        # Two benchmarks at a reduced size on the CPU arch
        pfi-bench gaussian unsharp --width 128 --height 128 --arch cpu

        # Host backend, saving the outputs
        pfi-bench laplace --backend host --save-png out/
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    names = names or tuple(suites.list_benchmarks())

    if backend == "taichi":
        try:
            selected = runtime.init(arch)
        except (PyFastImgError, ValueError) as e:
            click.echo(f"Skipping all benchmarks: {e}", err=True)
            return
        if verbose:
            click.echo(f"Taichi arch: {selected}")

    for name in names:
        try:
            result = suites.run_benchmark(
                name,
                backend=backend,
                width=width,
                height=height,
                samples=samples,
                warmup=warmup,
            )
        except (PyFastImgError, ValueError) as e:
            click.echo(f"Error: {name}: {e}", err=True)
            continue

        if result.skipped:
            click.echo(f"{name}: skipped ({result.reason})")
            continue

        line = f"{name}: {result.best_ms:.3f} ms"
        if result.check_passed is False:
            line += " (check FAILED)"
        click.echo(line)

        if save_png is not None:
            for path in _save_png(result, save_png):
                if verbose:
                    click.echo(f"  saved {path}")


@click.command()
def list_benchmarks():
    """
    List the registered benchmarks with their default size.

    Examples:

        pfi-list
    """
    for name in suites.list_benchmarks():
        case = suites.get_benchmark(name)
        w, h = case.size
        click.echo(f"{name:24s} {w}x{h}  {case.description}")


if __name__ == "__main__":
    bench()

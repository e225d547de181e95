"""
Integration tests running every registered benchmark pipeline.

The pipelines are built at reduced sizes and realized on the host backend;
the Taichi device path is checked against it on the CPU arch.
"""
import numpy as np
import pytest

from pyfastimg.bench import list_benchmarks

SMALL = {"reduce_sum": (777, 1)}


class TestBenchmarkPipelines:
    """Build and realize every benchmark."""

    @pytest.mark.integration
    @pytest.mark.slow
    @pytest.mark.parametrize("name", list_benchmarks())
    def test_host_run(self, name):
        """Test that the pipeline realizes with finite outputs of the right size."""
        from pyfastimg.bench import get_benchmark, run_benchmark

        width, height = SMALL.get(name, (40, 36))
        result = run_benchmark(name, backend="host", width=width, height=height, samples=2, warmup=1)
        assert not result.skipped
        assert result.outputs
        for buf in result.outputs:
            data = buf.host
            if get_benchmark(name).size[1] != 1:
                assert data.shape == (height, width)
            if data.dtype.kind == "f":
                assert np.isfinite(data).all()
        if result.check_passed is not None:
            assert result.check_passed

    @pytest.mark.integration
    @pytest.mark.slow
    @pytest.mark.gpu
    @pytest.mark.parametrize("name", ["gaussian", "image_mosaics", "unsharp", "image_enhance"])
    def test_taichi_agrees_with_host(self, taichi_cpu, name):
        """Test that the Taichi backend reproduces the host results."""
        from pyfastimg.bench import run_benchmark

        host = run_benchmark(name, backend="host", width=40, height=36, samples=2)
        device = run_benchmark(name, backend="taichi", width=40, height=36, samples=2)
        assert not device.skipped
        for h, d in zip(host.outputs, device.outputs):
            np.testing.assert_allclose(d.host, h.host, rtol=1e-4, atol=1e-3)


class TestWorkflows:
    """End-to-end use of the public API."""

    @pytest.mark.integration
    def test_buffer_pipeline_workflow(self, tmp_path, sample_image):
        """Test build, realize, re-realize after an input update, and save."""
        import pyfastimg as pfi

        img = pfi.Buffer(sample_image, name="input")
        blurred = pfi.filters.gaussian_blur(img)
        edges = pfi.filters.prewitt(blurred)
        p = pfi.Pipeline([blurred, edges], name="workflow")
        first_blur, first_edges = p.realize()
        assert first_edges.host.max() <= 255.0

        img.set(sample_image * 0.0 + 1.0)
        second_blur, _ = p.realize()
        np.testing.assert_allclose(second_blur.host, 1.0, rtol=1e-5)

        path = tmp_path / "blur.npy"
        np.save(path, first_blur.host)
        np.testing.assert_array_equal(np.load(path), first_blur.host)

    @pytest.mark.integration
    def test_mosaic_of_two_halves(self, images):
        """Test that a hard-split mosaic keeps each side far from the seam."""
        import pyfastimg as pfi

        a = pfi.Buffer(images.constant(64, 32, 200.0))
        b = pfi.Buffer(images.constant(64, 32, 50.0))
        out = pfi.Pipeline(pfi.filters.mosaic(a, b, levels=4, detail_gain=1.0)).realize().host
        assert out.shape == (32, 64)
        np.testing.assert_allclose(out[:, :4], 200.0, rtol=1e-3)
        np.testing.assert_allclose(out[:, -4:], 50.0, rtol=1e-3)

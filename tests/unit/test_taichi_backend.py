"""
Unit tests for the Taichi backend, run on the CPU arch.
"""
import numpy as np
import pytest


def _host(node):
    from pyfastimg import Pipeline

    return Pipeline(node).realize().host


def _device(node):
    from pyfastimg import Pipeline, Residency

    out = Pipeline(node, backend="taichi").realize()
    assert out.residency == Residency.DEVICE_ONLY
    return out.to_host().sync().host


class TestLowering:
    """Test which nodes become Taichi kernels (no runtime needed)."""

    @pytest.mark.unit
    def test_float_stencil_matched(self):
        """Test that a plain float convolution is lowered."""
        from pyfastimg import Buffer
        from pyfastimg.backend import StencilStep, match_linear_stencil
        from pyfastimg.filters import gaussian_blur

        step = match_linear_stencil(gaussian_blur(Buffer(shape=(8, 8))))
        assert isinstance(step, StencilStep)
        assert step.mins == (-1, -1)
        assert step.extents == (3, 3)

    @pytest.mark.unit
    def test_other_nodes_not_matched(self):
        """Test that integer, weighted and sparse reductions stay on the host."""
        from pyfastimg import Buffer
        from pyfastimg.backend import match_linear_stencil
        from pyfastimg.filters import atrous_filter, bilateral_filter, corner_response
        from pyfastimg.filters.masks import ATROUS_MASKS, as_buffer

        int_img = Buffer(shape=(8, 8), dtype=np.int32)
        corner = corner_response(int_img)
        assert match_linear_stencil(corner) is None

        bil = bilateral_filter(Buffer(shape=(16, 16)))
        assert all(match_linear_stencil(d) is None for d in bil.dependencies())

        at = atrous_filter(Buffer(shape=(8, 8), dtype=np.uint32), as_buffer(ATROUS_MASKS[5]))
        assert all(match_linear_stencil(d) is None for d in at.dependencies())

    @pytest.mark.unit
    def test_plan_records_lowering(self):
        """Test that planning on the Taichi backend fills plan.lowered."""
        from pyfastimg import Buffer, Pipeline
        from pyfastimg.filters import gaussian_pyramid

        pyr = gaussian_pyramid(Buffer(shape=(16, 16)), levels=3)
        plan = Pipeline(pyr[-1], backend="taichi").compile()
        assert len(plan.lowered) == 2
        assert Pipeline(pyr[-1]).compile().lowered == {}


class TestTaichiRealize:
    """Test realization through Taichi kernels."""

    @pytest.mark.unit
    @pytest.mark.gpu
    def test_blur_matches_host(self, taichi_cpu, sample_image):
        """Test that the Taichi stencil agrees with the host interpreter."""
        from pyfastimg import Buffer
        from pyfastimg.filters import gaussian_blur

        node = gaussian_blur(Buffer(sample_image))
        np.testing.assert_allclose(_device(node), _host(node), rtol=1e-5)

    @pytest.mark.unit
    @pytest.mark.gpu
    def test_pyramid_matches_host(self, taichi_cpu, sample_image):
        """Test decimated stencils reading intermediate nodes."""
        from pyfastimg import Buffer
        from pyfastimg.filters import laplacian_pyramid, reconstruct

        node = reconstruct(laplacian_pyramid(Buffer(sample_image), 3))
        np.testing.assert_allclose(_device(node), _host(node), rtol=1e-4, atol=1e-2)

    @pytest.mark.unit
    @pytest.mark.gpu
    def test_device_resident_input(self, taichi_cpu, sample_image):
        """Test inputs already on the device and device-only intermediates."""
        from pyfastimg import Buffer, Pipeline
        from pyfastimg.filters import gaussian_blur
        from pyfastimg.graph import FunctionNode, repeat_edge, x, y

        img = Buffer(sample_image).to_device()
        blurred = Pipeline(gaussian_blur(img), backend="taichi").realize()
        doubled = FunctionNode("doubled").define(repeat_edge(blurred)(x, y) * 2.0)
        again = gaussian_blur(blurred)

        ref = _host(gaussian_blur(Buffer(sample_image)))
        np.testing.assert_allclose(_device(doubled), ref * 2.0, rtol=1e-5)
        np.testing.assert_allclose(_device(again), _host(gaussian_blur(Buffer(ref))), rtol=1e-4)

    @pytest.mark.unit
    def test_requires_accelerator(self, monkeypatch):
        """Test that realizing without an accelerator is a RealizeError."""
        from pyfastimg import Buffer, Pipeline, runtime
        from pyfastimg.errors import RealizeError
        from pyfastimg.filters import gaussian_blur

        monkeypatch.setattr(runtime, "has_accelerator", lambda: False)
        p = Pipeline(gaussian_blur(Buffer(shape=(4, 4))), backend="taichi")
        with pytest.raises(RealizeError):
            p.realize()
        assert not p.usable

    @pytest.mark.unit
    @pytest.mark.gpu
    def test_executor_round_trip(self, taichi_cpu, sample_image):
        """Test timed realizations with transfers."""
        from pyfastimg import Buffer, Pipeline
        from pyfastimg.bench import Executor
        from pyfastimg.filters import gaussian_blur

        img = Buffer(sample_image)
        pipeline = Pipeline(gaussian_blur(img), backend="taichi")
        executor = Executor(pipeline, [img])
        assert executor.uses_device
        result = executor.run("blur", samples=3, warmup=1)
        assert len(result.times_ms) == 2
        assert executor.outputs[0].host.shape == sample_image.shape

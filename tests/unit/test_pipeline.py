"""
Unit tests for the host backend and the Pipeline driver.
"""
import numpy as np
import pytest


def _realize(node, **kwargs):
    from pyfastimg import Pipeline

    return Pipeline(node, **kwargs).realize().host


class TestHostEvaluation:
    """Test the NumPy interpreter on small graphs."""

    @pytest.mark.unit
    def test_pure_node(self):
        """Test a pointwise node over a buffer."""
        from pyfastimg import Buffer
        from pyfastimg.graph import FunctionNode, x, y

        data = np.arange(12, dtype=np.float32).reshape(3, 4)
        buf = Buffer(data)
        f = FunctionNode("f").define(buf(x, y) * 2.0 + x)
        expected = data * 2.0 + np.arange(4, dtype=np.float32)[None, :]
        np.testing.assert_array_equal(_realize(f), expected)

    @pytest.mark.unit
    def test_integer_division_floors(self):
        """Test floor division and non-negative modulo on integers."""
        from pyfastimg.graph import FunctionNode, x

        div = FunctionNode("div").define((x - 3) / 2, vars=(x,), extent=(6,))
        mod = FunctionNode("mod").define((x - 3) % 2, vars=(x,), extent=(6,))
        np.testing.assert_array_equal(_realize(div), [-2, -1, -1, 0, 0, 1])
        np.testing.assert_array_equal(_realize(mod), [1, 0, 1, 0, 1, 0])

    @pytest.mark.unit
    def test_float_division_is_true_division(self):
        """Test that float operands divide exactly."""
        from pyfastimg.graph import FunctionNode, x

        f = FunctionNode("f").define((x * 1.0) / 4, vars=(x,), extent=(3,))
        np.testing.assert_array_equal(_realize(f), np.array([0.0, 0.25, 0.5], dtype=np.float32))

    @pytest.mark.unit
    def test_float_floor_division_floors(self):
        """Test that // floors float operands and stays a plain division on integers."""
        from pyfastimg.graph import FunctionNode, x
        from pyfastimg.graph.expr import F32

        q = (x * 1.0 - 3.0) // 2.0
        assert q.op == "floor" and q.dtype == F32
        assert (x // 2).op == "div"

        f = FunctionNode("f").define(q, vars=(x,), extent=(6,))
        g = FunctionNode("g").define(7.0 // (x + 2.0), vars=(x,), extent=(3,))
        np.testing.assert_array_equal(_realize(f), [-2.0, -1.0, -1.0, 0.0, 0.0, 1.0])
        np.testing.assert_array_equal(_realize(g), [3.0, 2.0, 1.0])

    @pytest.mark.unit
    def test_casts_saturate(self):
        """Test float to integer casts: saturation and NaN to zero."""
        from pyfastimg.graph import FunctionNode, cast, sqrt, x
        from pyfastimg.graph.expr import I32, U8

        big = FunctionNode("big").define(cast(U8, x * 200.0 - 50.0), vars=(x,), extent=(4,))
        nan = FunctionNode("nan").define(cast(I32, sqrt(x * 0.0 - 1.0)), vars=(x,), extent=(2,))
        np.testing.assert_array_equal(_realize(big), [0, 150, 255, 255])
        np.testing.assert_array_equal(_realize(nan), [0, 0])

    @pytest.mark.unit
    def test_repeat_edge_reads(self):
        """Test that clamped reads repeat the nearest edge pixel."""
        from pyfastimg import Buffer
        from pyfastimg.graph import FunctionNode, repeat_edge, x, y

        data = np.arange(6, dtype=np.float32).reshape(2, 3)
        src = repeat_edge(Buffer(data))
        f = FunctionNode("f").define(src(x - 1, y + 1), extent=(3, 2))
        np.testing.assert_array_equal(_realize(f), [[3, 3, 4], [3, 3, 4]])

    @pytest.mark.unit
    def test_call_reads_clamp_to_callee(self):
        """Test that reads of a node outside its extent repeat its edge."""
        from pyfastimg.graph import FunctionNode, x

        a = FunctionNode("a").define(x * 10, vars=(x,), extent=(3,))
        b = FunctionNode("b").define(a(x + 1), vars=(x,), extent=(4,))
        np.testing.assert_array_equal(_realize(b), [10, 20, 20, 20])

    @pytest.mark.unit
    def test_min_reduction(self):
        """Test a min reduction over a window."""
        from pyfastimg import Buffer
        from pyfastimg.graph import FunctionNode, ReductionDomain, repeat_edge, x, y

        data = np.array([[5, 1, 4, 2]], dtype=np.float32)
        src = repeat_edge(Buffer(data))
        r = ReductionDomain([(-1, 3), (0, 1)])
        f = FunctionNode("f").define_reduction(
            src(x + r.x, y + r.y), r, init=np.float32(np.inf), op="min", extent=(4, 1)
        )
        np.testing.assert_array_equal(_realize(f), [[1, 1, 1, 2]])

    @pytest.mark.unit
    def test_zero_dimensional_sum(self):
        """Test a reduction producing a scalar."""
        from pyfastimg import Buffer
        from pyfastimg.filters import sequential_sum

        vec = Buffer(np.arange(1, 11, dtype=np.int32))
        out = _realize(sequential_sum(vec))
        assert out.shape == ()
        assert int(out) == 55


class TestPipeline:
    """Test compilation, targets and failure handling."""

    @pytest.mark.unit
    def test_outputs_and_extents(self):
        """Test output extents and buffer allocation of a two-output pipeline."""
        from pyfastimg import Buffer, Pipeline
        from pyfastimg.graph import FunctionNode, select, x, y

        buf = Buffer(shape=(5, 7))
        a = FunctionNode("a").define(buf(x, y) + 1.0)
        b = FunctionNode("b").define(select(a(x, y) > 0.5, 1, 0))
        p = Pipeline([a, b])
        assert p.output_extents() == [(7, 5), (7, 5)]
        outs = p.realize()
        assert isinstance(outs, list) and len(outs) == 2
        assert outs[1].dtype == np.int32
        np.testing.assert_array_equal(outs[1].host, np.ones((5, 7)))

    @pytest.mark.unit
    def test_realize_into_targets_and_reuse(self):
        """Test that inputs are read at realization time."""
        from pyfastimg import Buffer, Pipeline
        from pyfastimg.graph import FunctionNode, x, y

        buf = Buffer(np.ones((2, 2), dtype=np.float32))
        f = FunctionNode("f").define(buf(x, y) * 3.0)
        p = Pipeline(f)
        out = Buffer(shape=(2, 2))
        assert p.realize(out) is out
        np.testing.assert_array_equal(out.host, np.full((2, 2), 3.0))
        buf.set(2.0)
        p.realize(out)
        np.testing.assert_array_equal(out.host, np.full((2, 2), 6.0))

    @pytest.mark.unit
    def test_bounds_hint(self):
        """Test that a bounds hint overrides the inferred extent."""
        from pyfastimg import realize
        from pyfastimg.graph import FunctionNode, x, y

        f = FunctionNode("f").define(x + 10 * y)
        out = realize(f, bounds_hints={f: (3, 2)})
        np.testing.assert_array_equal(out.host, [[0, 1, 2], [10, 11, 12]])

    @pytest.mark.unit
    def test_construction_error_propagates(self):
        """Test that malformed graphs raise ConstructionError at compile time."""
        from pyfastimg import Pipeline
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, x, y

        p = Pipeline(FunctionNode("f").define(x + y))
        with pytest.raises(ConstructionError):
            p.compile()
        with pytest.raises(ConstructionError):
            Pipeline([])

    @pytest.mark.unit
    def test_failure_leaves_pipeline_unusable(self):
        """Test that an out of bounds raw read fails once and for all."""
        from pyfastimg import Buffer, Pipeline
        from pyfastimg.errors import RealizeError
        from pyfastimg.graph import FunctionNode, x, y

        buf = Buffer(shape=(3, 3))
        f = FunctionNode("f").define(buf(x + 1, y))
        p = Pipeline(f)
        with pytest.raises(RealizeError, match="Out of bounds"):
            p.realize()
        assert not p.usable
        with pytest.raises(RealizeError, match="unusable"):
            p.realize()

    @pytest.mark.unit
    def test_target_mismatch(self):
        """Test that targets of the wrong shape or dtype are rejected."""
        from pyfastimg import Buffer, Pipeline
        from pyfastimg.errors import RealizeError
        from pyfastimg.graph import FunctionNode, x, y

        buf = Buffer(shape=(3, 3))
        f = FunctionNode("f").define(buf(x, y))
        with pytest.raises(RealizeError):
            Pipeline(f).realize(Buffer(shape=(4, 4)))
        with pytest.raises(RealizeError):
            Pipeline(f).realize(Buffer(shape=(3, 3), dtype=np.int32))
        with pytest.raises(RealizeError):
            Pipeline(f).realize([])

    @pytest.mark.unit
    def test_unknown_backend(self):
        """Test backend lookup by name."""
        from pyfastimg import Pipeline
        from pyfastimg.graph import FunctionNode, x

        f = FunctionNode("f").define(x * 1, vars=(x,), extent=(2,))
        with pytest.raises(ValueError):
            Pipeline(f, backend="opencl")

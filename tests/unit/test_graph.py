"""
Unit tests for expressions, reduction domains, FunctionNodes and scheduling.
"""
import numpy as np
import pytest


class TestExpressionTyping:
    """Test dtype propagation through expressions."""

    @pytest.mark.unit
    def test_weak_literals_adopt_partner_type(self):
        """Test that Python literals take the type of the other operand."""
        from pyfastimg import Buffer
        from pyfastimg.graph import x, y

        img_i = Buffer(shape=(4, 4), dtype=np.int32)
        img_u8 = Buffer(shape=(4, 4), dtype=np.uint8)
        assert (img_i(x, y) * 2).dtype == np.int32
        assert (img_u8(x, y) + 1).dtype == np.uint8
        assert (img_i(x, y) * 0.5).dtype == np.float32
        assert (x + 1).dtype == np.int32

    @pytest.mark.unit
    def test_strong_types_promote(self):
        """Test promotion between two typed operands."""
        from pyfastimg import Buffer
        from pyfastimg.graph import x, y

        a = Buffer(shape=(2, 2), dtype=np.uint8)
        b = Buffer(shape=(2, 2), dtype=np.int32)
        assert (a(x, y) + b(x, y)).dtype == np.int32
        assert (a(x, y) + np.float32(1)).dtype == np.float32

    @pytest.mark.unit
    def test_comparisons_and_math(self):
        """Test boolean and float results."""
        from pyfastimg.graph import cast, sqrt, x
        from pyfastimg.graph.expr import U32

        assert (x < 3).dtype == np.bool_
        assert sqrt(x).dtype == np.float32
        assert cast(U32, x).dtype == np.uint32

    @pytest.mark.unit
    def test_invalid_operations(self):
        """Test rejected expressions."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import x

        with pytest.raises(ConstructionError):
            (x * 1.0) << 2
        with pytest.raises(ConstructionError):
            (x * 1.0) & 1
        with pytest.raises(TypeError):
            bool(x < 2)
        with pytest.raises(TypeError):
            x + "a"

    @pytest.mark.unit
    def test_buffer_read_checks(self):
        """Test coordinate count and type checks of buffer reads."""
        from pyfastimg import Buffer
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import x, y

        buf = Buffer(shape=(3, 3))
        with pytest.raises(ConstructionError):
            buf(x)
        with pytest.raises(ConstructionError):
            buf(x * 0.5, y)


class TestReductionDomain:
    """Test reduction domain construction and iteration order."""

    @pytest.mark.unit
    def test_row_major_order(self):
        """Test that x varies fastest."""
        from pyfastimg.graph import ReductionDomain

        r = ReductionDomain([(-1, 2), (0, 2)])
        assert r.points() == ((-1, 0), (0, 0), (-1, 1), (0, 1))
        assert r.mins == (-1, 0)
        assert r.extents == (2, 2)

    @pytest.mark.unit
    def test_centered_and_skip_zero(self):
        """Test kernel-centred domains and zero-tap filtering."""
        from pyfastimg.filters.masks import ATROUS_MASKS, as_buffer
        from pyfastimg.graph import ReductionDomain

        mask = as_buffer(ATROUS_MASKS[5])
        full = ReductionDomain.centered(mask)
        sparse = ReductionDomain.centered(mask, skip_zero_taps=True)
        assert full.mins == (-2, -2)
        assert len(full) == 25
        assert len(sparse) == 9
        assert (-2, -2) in sparse.points() and (-1, 0) not in sparse.points()

    @pytest.mark.unit
    def test_kernel_mismatch(self):
        """Test that a domain refuses a kernel of another shape."""
        from pyfastimg import Buffer
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import ReductionDomain

        r = ReductionDomain([(-1, 3), (-1, 3)])
        with pytest.raises(ConstructionError):
            r.tap(Buffer(shape=(5, 5)))

    @pytest.mark.unit
    def test_negative_extent(self):
        """Test rejected domains."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import ReductionDomain

        with pytest.raises(ConstructionError):
            ReductionDomain([(0, -1)])
        with pytest.raises(ConstructionError):
            ReductionDomain([])


class TestFunctionNode:
    """Test definition rules of FunctionNodes."""

    @pytest.mark.unit
    def test_define_and_properties(self):
        """Test a simple pure definition."""
        from pyfastimg import Buffer
        from pyfastimg.graph import FunctionNode, x, y

        buf = Buffer(shape=(4, 5))
        f = FunctionNode("f").define(buf(x, y) * 2.0)
        assert f.defined and not f.is_reduction
        assert f.arity == 2
        assert f.dtype == np.float32
        assert f.extent is None
        assert f.buffers() == [buf]

    @pytest.mark.unit
    def test_redefinition_rejected(self):
        """Test that a node is defined exactly once."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, x

        f = FunctionNode("f").define(x * 1, vars=(x,), extent=(3,))
        with pytest.raises(ConstructionError):
            f.define(x * 2, vars=(x,))

    @pytest.mark.unit
    def test_forward_reference_rejected(self):
        """Test that an undefined node cannot be called (no cycles)."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, x, y

        g = FunctionNode("g")
        with pytest.raises(ConstructionError):
            FunctionNode("f").define(g(x, y) + 1)

    @pytest.mark.unit
    def test_foreign_variable_rejected(self):
        """Test that only the node's own pure variables may appear."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, x, y

        with pytest.raises(ConstructionError):
            FunctionNode("f").define(x + y, vars=(x,), extent=(4,))

    @pytest.mark.unit
    def test_rvar_of_other_domain_rejected(self):
        """Test that reduction variables must belong to the node's domain."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, ReductionDomain

        r1 = ReductionDomain([(0, 2)])
        r2 = ReductionDomain([(0, 2)])
        with pytest.raises(ConstructionError):
            FunctionNode("f").define_reduction(r1.x, r2, vars=(), extent=())
        with pytest.raises(ConstructionError):
            FunctionNode("g").define(r1.x, vars=(), extent=())

    @pytest.mark.unit
    def test_cross_graph_reference_rejected(self):
        """Test that nodes of two graphs cannot be mixed."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, Graph, x

        f = FunctionNode("f", Graph("a")).define(x * 1, vars=(x,), extent=(2,))
        with pytest.raises(ConstructionError):
            FunctionNode("g", Graph("b")).define(f(x), vars=(x,))

    @pytest.mark.unit
    def test_bad_extent_and_arity(self):
        """Test extent and call arity checks."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, x, y

        with pytest.raises(ConstructionError):
            FunctionNode("f").define(x + y, extent=(3,))
        f = FunctionNode("f").define(x + y, extent=(3, 3))
        with pytest.raises(ConstructionError):
            f(x)

    @pytest.mark.unit
    def test_unknown_reduction_operator(self):
        """Test that only add/mul/min/max combine."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, ReductionDomain

        r = ReductionDomain([(0, 3)])
        with pytest.raises(ConstructionError):
            FunctionNode("f").define_reduction(r.x, r, op="sub", vars=(), extent=())


class TestSchedule:
    """Test topological ordering and extent inference."""

    @pytest.mark.unit
    def test_producers_first(self):
        """Test that every node comes after the nodes it reads."""
        from pyfastimg import Buffer
        from pyfastimg.graph import FunctionNode, topological_order, x, y

        buf = Buffer(shape=(4, 4))
        a = FunctionNode("a").define(buf(x, y))
        b = FunctionNode("b").define(a(x, y) + 1.0)
        c = FunctionNode("c").define(a(x, y) * b(x, y))
        order = topological_order([c, b])
        names = [n.name for n in order]
        assert names == ["a", "b", "c"]

    @pytest.mark.unit
    def test_dangling_output(self):
        """Test that an undefined output is reported."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, topological_order

        with pytest.raises(ConstructionError):
            topological_order([FunctionNode("nothing")])

    @pytest.mark.unit
    def test_cycle_detected(self):
        """Test cycle detection on a graph corrupted after construction."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, topological_order, x, y
        from pyfastimg.graph.func import Pure

        a = FunctionNode("a").define(x + y, extent=(2, 2))
        b = FunctionNode("b").define(a(x, y) + 1)
        a._rec.body = Pure(b(x, y) + 1)
        with pytest.raises(ConstructionError):
            topological_order([b])

    @pytest.mark.unit
    def test_extent_inference(self):
        """Test extents from hints, declarations, dependencies and buffers."""
        from pyfastimg import Buffer
        from pyfastimg.graph import FunctionNode, infer_extents, topological_order, x, y

        buf = Buffer(shape=(6, 10))
        a = FunctionNode("a").define(buf(x, y))
        b = FunctionNode("b").define(a(x, y), extent=(3, 2))
        c = FunctionNode("c").define(b(x, y) + a(x, y))
        order = topological_order([c])
        ext = infer_extents(order)
        assert ext[a.index] == (10, 6)
        assert ext[b.index] == (3, 2)
        assert ext[c.index] == (3, 2)
        ext = infer_extents(order, {"c": (5, 5)})
        assert ext[c.index] == (5, 5)

    @pytest.mark.unit
    def test_extent_not_inferable(self):
        """Test that a node with no extent source is reported."""
        from pyfastimg.errors import ConstructionError
        from pyfastimg.graph import FunctionNode, infer_extents, topological_order, x, y

        f = FunctionNode("f").define(x + y)
        with pytest.raises(ConstructionError):
            infer_extents(topological_order([f]))

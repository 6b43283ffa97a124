import warnings

import pytest
import numpy as np
from ADpy.core import Graph, Op
from ADpy.ops import Add, Multiply, Power, Relu


class TestBasicOps:
    """Tests for the chain-rule steps of Add and Multiply"""

    def setup_method(self):
        self.g = Graph()

    def test_add_distributes_gradient(self):
        a, b = self.g.leaf(2.0), self.g.leaf(3.0)
        c = Add.apply(a, b)
        c.backward()

        assert c.grad == 1.0
        assert a.grad == c.grad
        assert b.grad == c.grad

    def test_multiply_product_rule(self):
        a, b = self.g.leaf(2.0), self.g.leaf(3.0)
        c = Multiply.apply(a, b)
        c.backward()

        assert a.grad == b.data * c.grad
        assert b.grad == a.data * c.grad

    def test_multiply_with_seed(self):
        """The product rule scales with the incoming gradient"""
        a, b = self.g.leaf(2.0), self.g.leaf(3.0)
        c = a * b
        c.backward(gradient=4.0)

        assert c.grad == 4.0
        assert a.grad == 12.0
        assert b.grad == 8.0

    def test_add_same_operand_twice(self):
        """c = a + a gives dc/da = 2"""
        a = self.g.leaf(3.0)
        c = Add.apply(a, a)
        c.backward()
        assert a.grad == 2.0

    def test_square_by_multiplication(self):
        """c = a * a gives dc/da = 2a"""
        a = self.g.leaf(3.0)
        c = Multiply.apply(a, a)
        c.backward()
        assert a.grad == 6.0


class TestPower:
    """Tests for the power rule"""

    def setup_method(self):
        self.g = Graph()

    @pytest.mark.parametrize("base,exponent", [(2.0, 3), (1.5, 2.5), (4.0, -1), (3.0, 0)])
    def test_power_rule(self, base, exponent):
        a = self.g.leaf(base)
        b = Power.apply(a, exponent)
        b.backward()

        expected = exponent * base ** (exponent - 1) * b.grad
        assert np.allclose(a.grad, expected)

    def test_reciprocal_gradient(self):
        a = self.g.leaf(4.0)
        b = a.pow(-1)
        b.backward()
        assert np.isclose(a.grad, -1.0 / 16.0)

    def test_zero_base_negative_exponent(self):
        """Non-finite values propagate without raising"""
        a = self.g.leaf(0.0)
        b = a.pow(-1)
        assert np.isinf(b.data)

        b.backward()
        assert not np.isfinite(a.grad)

    def test_exponent_node_is_constant(self):
        """An exponent taken from a node never receives a gradient"""
        a = self.g.leaf(2.0)
        k = self.g.leaf(3.0)
        b = a.pow(k)
        b.backward()

        assert b.data == 8.0
        assert b.right is None
        assert b.aux == 3.0
        assert a.grad == 12.0
        assert k.grad == 0.0

    def test_exponent_node_does_not_enter_graph(self):
        a = self.g.leaf(2.0)
        k = self.g.leaf(3.0)
        b = a.pow(k)
        assert k not in b.operands

    def test_exponent_node_from_another_graph(self):
        a = self.g.leaf(2.0)
        k = Graph().leaf(3.0)
        with pytest.raises(TypeError):
            a.pow(k)

    def test_aux_is_read_only(self):
        b = self.g.leaf(2.0).pow(2)
        with pytest.raises(ValueError):
            b.aux[...] = 5.0


class TestRelu:
    """Tests for relu gating"""

    def setup_method(self):
        self.g = Graph()

    def test_active_branch(self):
        a = self.g.leaf(3.0)
        b = Relu.apply(a)
        b.backward()
        assert a.grad == b.grad

    @pytest.mark.parametrize("value", [-2.0, 0.0])
    def test_inactive_branch(self, value):
        """Gradient is blocked where the output is not strictly positive"""
        a = self.g.leaf(value)
        b = Relu.apply(a)
        b.backward()
        assert b.grad == 1.0
        assert a.grad == 0.0

    def test_relu_in_expression(self):
        a = self.g.leaf(2.0)
        b = (a * 3 - 1).relu() * 2
        b.backward()
        assert b.data == 10.0
        assert a.grad == 6.0

    def test_op_tags(self):
        assert Add.op is Op.ADD
        assert Multiply.op is Op.MUL
        assert Power.op is Op.POW
        assert Relu.op is Op.RELU


class TestNonFinitePropagation:
    """Non-finite results flow through every op without numpy warnings"""

    def setup_method(self):
        self.g = Graph()

    def test_zero_over_zero(self):
        a, b = self.g.leaf(0.0), self.g.leaf(0.0)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            c = a / b
            c.backward()

        assert np.isnan(c.data)
        assert np.isnan(b.grad)

    def test_inf_minus_inf(self):
        a = self.g.leaf(0.0)
        inf = a.pow(-1)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            c = inf + inf * -1.0
            d = c * a
            d.backward()

        assert np.isnan(c.data)
        assert np.isnan(d.data)
        assert np.isnan(a.grad)

    def test_overflow(self):
        g = Graph(dtype=np.float32)
        a = g.leaf(1e30)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            b = a * a
            b.backward()

        assert np.isinf(b.data)
        assert np.isfinite(a.grad)

import pytest
import numpy as np
from ADpy.core import (
    Graph,
    GraphInvariantError,
    Op,
    evaluate_gradients,
    get_evaluator,
)


class TestGradientEvaluator:
    """Tests for the evaluator's traversal"""

    def setup_method(self):
        self.evaluator = get_evaluator()
        self.g = Graph()

    def test_linearize_visits_each_node_once(self):
        """Shared nodes appear exactly once in the linearized order"""
        a = self.g.leaf(2.0)
        b = a * a
        c = b + a
        d = c * b

        order = self.evaluator.linearize(d)
        indices = [n.index for n in order]
        assert len(indices) == len(set(indices))
        assert order == [a, b, c, d]

    def test_linearize_is_topological(self):
        a = self.g.leaf(2.0)
        b = self.g.leaf(3.0)
        e = ((a * b) + b) ** 2

        order = self.evaluator.linearize(e)
        position = {node: i for i, node in enumerate(order)}
        for node in order:
            for operand in node.operands:
                assert position[operand] < position[node]

    def test_linearize_skips_unreachable_nodes(self):
        a = self.g.leaf(1.0)
        unused = self.g.leaf(5.0) * 2
        b = a + 1

        order = self.evaluator.linearize(b)
        assert unused not in order
        assert len(order) == 3

    def test_leaf_root(self):
        a = self.g.leaf(3.0)
        a.backward()
        assert a.grad == 1.0


class TestGradientComputation:
    """Tests for gradient computation in different graph structures"""

    def setup_method(self):
        self.g = Graph()

    def test_end_to_end(self):
        """
        a = 2, b = 3, c = a * b, d = c + b, e = d ** 2

        Expected values agree with PyTorch.
        """
        a = self.g.leaf(2)
        b = self.g.leaf(3)
        c = a.mul(b)
        d = c.add(b)
        e = d.pow(2)

        e.backward()

        assert d.data == 9
        assert e.data == 81
        assert e.grad == 1
        assert d.grad == 18
        assert c.grad == 18
        assert b.grad == 54
        assert a.grad == 54

    def test_branching_graph(self):
        """Test gradient computation in a graph with multiple paths."""

        #     x
        #   /   \
        #  y1   y2
        #   \   /
        #     z
        x = self.g.leaf(2.0)
        y1 = x * 2.0
        y2 = x * 3.0
        z = y1 + y2

        z.backward()
        # Sum of both paths: 2 + 3
        assert x.grad == 5.0

    def test_deep_diamond_is_not_inflated(self):
        """Shared subgraphs propagate once, not once per path"""
        # z = (s + s) where s = a * a; dz/da = 2 * 2a
        a = self.g.leaf(3.0)
        s = a * a
        z = s + s
        z.backward()

        assert s.grad == 2.0
        assert a.grad == 12.0

    def test_stacked_diamonds(self):
        """Each layer doubles the value; ten layers give 2^10"""
        a = self.g.leaf(1.0)
        x = a
        for _ in range(10):
            x = x + x
        x.backward()

        assert x.data == 1024.0
        assert a.grad == 1024.0

    def test_subtraction_and_division(self):
        a = self.g.leaf(6.0)
        b = self.g.leaf(2.0)
        c = (a - b) / b
        c.backward()

        # c = a/b - 1
        assert np.isclose(c.data, 2.0)
        assert np.isclose(a.grad, 1.0 / 2.0)
        assert np.isclose(b.grad, -6.0 / 4.0)

    def test_neg_gradient(self):
        a = self.g.leaf(3.0)
        b = -a
        b.backward()
        assert a.grad == -1.0

    def test_idempotent_reevaluation(self):
        """Evaluating the same root twice gives identical gradients"""
        a = self.g.leaf(2.0)
        b = self.g.leaf(3.0)
        e = ((a * b) + b) ** 2

        first = evaluate_gradients(e)
        second = evaluate_gradients(e)

        assert first.keys() == second.keys()
        for node in first:
            assert np.array_equal(first[node], second[node])
        assert a.grad == 54.0

    def test_new_root_resets_gradients(self):
        """Differentiating a different root does not mix in old gradients"""
        a = self.g.leaf(2.0)
        b = a * 3.0
        c = b * 5.0

        c.backward()
        assert a.grad == 15.0

        b.backward()
        assert a.grad == 3.0
        # c cannot be reached from b; its old gradient is cleared
        assert c.grad == 0.0


class TestGradientMapping:
    """Tests for the node to gradient mapping returned by evaluate_gradients"""

    def setup_method(self):
        self.g = Graph()

    def test_mapping_queryable_by_node(self):
        a = self.g.leaf(2.0)
        b = self.g.leaf(3.0)
        c = a * b

        grads = evaluate_gradients(c)
        assert grads[a] == 3.0
        assert grads[b] == 2.0
        assert grads[c] == 1.0

    def test_mapping_holds_copies(self):
        a = self.g.leaf(2.0)
        c = a * 4.0

        grads = evaluate_gradients(c)
        grads[a] += 100.0
        assert a.grad == 4.0

    def test_custom_seed(self):
        a = self.g.leaf(2.0)
        c = a * 4.0
        grads = evaluate_gradients(c, gradient=0.5)
        assert grads[a] == 2.0


class TestEvaluatorErrors:
    """Tests for invariant violations and misuse"""

    def setup_method(self):
        self.evaluator = get_evaluator()
        self.g = Graph()

    def test_nested_gradient_computation(self):
        """Test detection of nested gradient computations"""
        x = self.g.leaf(1.0)
        y = x + 2.0

        self.evaluator._currently_computing_gradients = True
        try:
            with pytest.raises(RuntimeError, match="Nested gradient computation detected"):
                self.evaluator.evaluate(y)
        finally:
            self.evaluator._currently_computing_gradients = False

    def test_cyclic_graph_detection(self):
        """Test detection of cycles in the computation graph"""
        x = self.g.leaf(1.0)
        y = self.g.leaf(2.0)
        z = x + y

        # Manually point an operand forward, closing a cycle
        x.op = Op.ADD
        x.left = z.index
        x.right = y.index

        with pytest.raises(GraphInvariantError, match="Cycle detected"):
            z.backward()

    def test_cycle_detected_without_invariant_checks(self):
        g = Graph(check_invariants=False)
        x = g.leaf(1.0)
        z = x * 2.0
        x.op = Op.MUL
        x.left = z.index
        x.right = z.index

        with pytest.raises(GraphInvariantError, match="Cycle detected"):
            z.backward()

    def test_malformed_node_detected(self):
        x = self.g.leaf(1.0)
        y = x.relu()
        y.right = x.index

        with pytest.raises(GraphInvariantError):
            y.backward()

    def test_guard_released_after_error(self):
        x = self.g.leaf(1.0)
        z = x + 1.0
        z.left = z.index

        with pytest.raises(GraphInvariantError):
            z.backward()

        # The evaluator is usable again
        w = self.g.leaf(2.0) * 3.0
        w.backward()
        assert w.left_node.grad == 3.0

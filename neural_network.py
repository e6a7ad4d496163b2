"""
Neural Network Brain for SpaceDuel.

A fixed-topology, fully-connected feed-forward net:

  inputs ──tanh──▶ hidden ──sigmoid──▶ outputs

All parameters live in one flat weight vector. Each neuron owns a
contiguous row of incoming weights followed by its bias, hidden neurons
first, then output neurons:

  [ h0: w_0 .. w_{I-1}, b ][ h1: ... ] ... [ o0: w_0 .. w_{H-1}, b ] ...

The same order is used by random init, mutation and crossover, so a
weight's index always means the same synapse.
"""

import numpy as np
from config import NUM_INPUTS, NUM_HIDDEN, NUM_OUTPUTS


def sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


def layer_slices(n_inputs: int = NUM_INPUTS, n_hidden: int = NUM_HIDDEN,
                 n_outputs: int = NUM_OUTPUTS) -> tuple:
    """Return (hidden_slice, output_slice) into the flat weight vector."""
    hidden_end = (n_inputs + 1) * n_hidden
    output_end = hidden_end + (n_hidden + 1) * n_outputs
    return slice(0, hidden_end), slice(hidden_end, output_end)


class NeuralNetwork:
    """
    View over a flat weight vector. Holds no state between forward passes,
    so a single instance can drive a ship for a whole match.
    """

    def __init__(self, weights: np.ndarray,
                 n_inputs: int = NUM_INPUTS, n_hidden: int = NUM_HIDDEN,
                 n_outputs: int = NUM_OUTPUTS):
        self.n_inputs  = n_inputs
        self.n_hidden  = n_hidden
        self.n_outputs = n_outputs

        expected = (n_inputs + 1) * n_hidden + (n_hidden + 1) * n_outputs
        if len(weights) != expected:
            raise ValueError(
                f"weight vector has {len(weights)} entries, topology "
                f"{n_inputs}-{n_hidden}-{n_outputs} needs {expected}")

        hs, os_ = layer_slices(n_inputs, n_hidden, n_outputs)
        # Row-major reshape keeps each neuron's bias as its last column
        hidden = np.asarray(weights[hs], dtype=np.float64).reshape(n_hidden, n_inputs + 1)
        output = np.asarray(weights[os_], dtype=np.float64).reshape(n_outputs, n_hidden + 1)
        self._w_ih, self._b_h = hidden[:, :-1], hidden[:, -1]
        self._w_ho, self._b_o = output[:, :-1], output[:, -1]

    # ──────────────────────────────────────────────────────────────────────────

    def forward(self, inputs) -> np.ndarray:
        """
        Run one forward pass.

        Args:
            inputs: array of shape (n_inputs,)

        Returns:
            outputs: float64 array of shape (n_outputs,), values 0..1
        """
        x = np.asarray(inputs, dtype=np.float64)
        if x.shape != (self.n_inputs,):
            raise ValueError(f"expected {self.n_inputs} inputs, got shape {x.shape}")
        hidden = np.tanh(self._w_ih @ x + self._b_h)
        return sigmoid(self._w_ho @ hidden + self._b_o)

    # ──────────────────────────────────────────────────────────────────────────

    def layers(self) -> dict:
        """Weight matrices and biases by layer (useful for visualisation)."""
        return {
            "w_ih": self._w_ih, "b_h": self._b_h,
            "w_ho": self._w_ho, "b_o": self._b_o,
        }

    def summary(self) -> str:
        lines = [f"NeuralNetwork {self.n_inputs}-{self.n_hidden}-{self.n_outputs}"]
        for name, arr in self.layers().items():
            lines.append(
                f"  {name:<5} shape={str(arr.shape):<9} "
                f"mean={arr.mean():+.3f}  |max|={np.abs(arr).max():.3f}"
            )
        return "\n".join(lines)

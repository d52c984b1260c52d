from __future__ import annotations

import torch
import torch.nn as nn

from ..core.generator import TurbulenceGenerator


class DrivingField(nn.Module):
    """
    Batched evaluation of a generator's current driving pattern with torch.

    Mode vectors and per-mode prefactors 2 N_w A_m are fixed buffers; the
    projection coefficients are copied in by ``sync`` whenever the generator
    produces a new pattern. The module never mutates the generator.
    """

    def __init__(
        self,
        generator: TurbulenceGenerator,
        dtype: torch.dtype = torch.float64,
        device: torch.device | str | None = None,
        chunk_size: int = 4096,
    ):
        super().__init__()
        self.ndim = generator.ndim
        self.chunk_size = int(chunk_size)
        self.step = generator.step

        modes = torch.as_tensor(generator.modes.vectors, dtype=dtype, device=device)  # [M,3]
        prefactor = 2.0 * generator.sol_weight_norm * torch.as_tensor(
            generator.modes.amplitudes, dtype=dtype, device=device
        )  # [M]
        self.register_buffer("modes", modes)
        self.register_buffer("prefactor", prefactor)
        self.register_buffer("aka", torch.zeros_like(modes))
        self.register_buffer("akb", torch.zeros_like(modes))
        self.sync(generator)

    @torch.no_grad()
    def sync(self, generator: TurbulenceGenerator) -> None:
        """Copy the generator's current coefficients (aka, akb) into the buffers."""
        if generator.n_modes != self.modes.shape[0]:
            raise ValueError("generator does not match this field's mode table")
        self.aka.copy_(torch.as_tensor(generator.aka, dtype=self.aka.dtype))
        self.akb.copy_(torch.as_tensor(generator.akb, dtype=self.akb.dtype))
        self.step = generator.step

    def forward(self, points: torch.Tensor) -> torch.Tensor:
        """
        points: [P, ndim] (or [P, 3]) positions
        returns: [P, ndim] field vectors
        """
        if points.ndim != 2 or points.shape[-1] < self.ndim or points.shape[-1] > 3:
            raise ValueError(f"points must have shape [P, {self.ndim}] (got {tuple(points.shape)})")
        pts = points.to(device=self.modes.device, dtype=self.modes.dtype)
        n_axes = pts.shape[-1]

        wa = self.prefactor[:, None] * self.aka  # [M,3]
        wb = self.prefactor[:, None] * self.akb  # [M,3]
        out = []
        for start in range(0, pts.shape[0], self.chunk_size):
            p = pts[start : start + self.chunk_size]  # [C,n_axes]
            phase = torch.einsum("ca,ma->cm", p, self.modes[:, :n_axes])  # k.x, [C,M]
            v = torch.cos(phase) @ wa - torch.sin(phase) @ wb  # [C,3]
            out.append(v[:, : self.ndim])
        if not out:
            return pts.new_zeros((0, self.ndim))
        return torch.cat(out, dim=0)

    @torch.no_grad()
    def sample_grid(self, lower, upper, n: int) -> torch.Tensor:
        """
        Field on the cell-centred uniform grid with ``n`` cells per axis.

        lower, upper: per-axis box bounds (length ndim)
        returns: [ndim, n, ...] (ndim spatial axes, ij indexing)
        """
        axes = []
        for a in range(self.ndim):
            h = (float(upper[a]) - float(lower[a])) / float(n)
            axes.append(
                float(lower[a]) + h * (torch.arange(n, dtype=self.modes.dtype, device=self.modes.device) + 0.5)
            )
        mesh = torch.meshgrid(*axes, indexing="ij")
        pts = torch.stack([m.reshape(-1) for m in mesh], dim=-1)  # [n^ndim, ndim]
        v = self.forward(pts)  # [n^ndim, ndim]
        return v.T.reshape((self.ndim,) + (n,) * self.ndim)

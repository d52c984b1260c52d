import torch


@torch.no_grad()
def rms_magnitude(v: torch.Tensor) -> torch.Tensor:
    # v: [P,d] -> rms of |v|
    return torch.sqrt(torch.mean(torch.sum(v * v, dim=-1)))


@torch.no_grad()
def compressive_fraction(modes: torch.Tensor, aka: torch.Tensor, akb: torch.Tensor, eps: float = 1e-300) -> torch.Tensor:
    # modes/aka/akb: [M,3]; share of coefficient power parallel to k (0: solenoidal, 1: compressive)
    kk = torch.sum(modes * modes, dim=-1)
    par = (torch.sum(modes * aka, dim=-1) ** 2 + torch.sum(modes * akb, dim=-1) ** 2) / kk
    tot = torch.sum(aka * aka, dim=-1) + torch.sum(akb * akb, dim=-1)
    return par.sum() / (tot.sum() + eps)

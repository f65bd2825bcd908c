"""Direct Game of Life step used to check the quadtree engine."""

import numpy as np
import torch
import torch.nn.functional as F

from .node import as_square_array

_KERNEL = torch.tensor([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=torch.float32).unsqueeze(0).unsqueeze(0)


def count_neighbors(cells) -> np.ndarray:
    """Count living Moore neighbours of every cell using convolution.

    Cells beyond the board edge count as dead.

    Args:
        cells: Flat or square board of 0/1 values or CellState

    Returns:
        ``(side, side)`` array of neighbour counts indexed ``[row, col]``
    """
    board = as_square_array(cells)
    board_tensor = torch.from_numpy(board.astype(np.float32)).unsqueeze(0).unsqueeze(0)
    neighbors = F.conv2d(board_tensor, _KERNEL, padding=1)
    return neighbors[0, 0].numpy().astype(np.int8)


def reference_step(cells, frozen_border: bool = True) -> np.ndarray:
    """Advance a board one generation without any decomposition.

    Args:
        cells: Flat or square board of 0/1 values or CellState
        frozen_border: Copy the outermost ring from the input, as the
            quadtree engine does

    Returns:
        ``(side, side)`` int8 array of the next generation
    """
    board = as_square_array(cells)
    neighbor_counts = count_neighbors(board)

    birth_mask = (board == 0) & (neighbor_counts == 3)
    survive_mask = (board > 0) & ((neighbor_counts == 2) | (neighbor_counts == 3))
    result = (birth_mask | survive_mask).astype(np.int8)

    if frozen_border:
        result[0, :] = board[0, :]
        result[-1, :] = board[-1, :]
        result[:, 0] = board[:, 0]
        result[:, -1] = board[:, -1]

    return result

from __future__ import annotations

import numpy as np
from sklearn.metrics import mean_squared_error

from .sparse import SparseMatrix


def rmse(predicted: SparseMatrix, actual: SparseMatrix) -> float:
    """Root-mean-square error between two matrices with identical keys.

    Both matrices must hold the same (row, col) keys in the same sorted order;
    anything else means the predictions were not built from `actual`'s keys.
    """
    pred_entries = predicted.get_all()
    real_entries = actual.get_all()
    if len(pred_entries) != len(real_entries):
        raise ValueError(
            f"RMSE size mismatch: predicted={len(pred_entries)} actual={len(real_entries)}"
        )
    if not pred_entries:
        raise ValueError("RMSE of empty matrices is undefined")

    for i, (p, r) in enumerate(zip(pred_entries, real_entries)):
        if p.row != r.row or p.col != r.col:
            raise ValueError(
                f"RMSE key mismatch at position {i}: predicted=({p.row}, {p.col}) actual=({r.row}, {r.col})"
            )

    y_pred = np.array([e.val for e in pred_entries], dtype=np.float64)
    y_true = np.array([e.val for e in real_entries], dtype=np.float64)
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))

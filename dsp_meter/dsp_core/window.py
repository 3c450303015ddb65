import numpy as np
from typing import Union


WINDOWS = ('rectangular', 'hann', 'hamming', 'blackman', 'bartlett', 'triangular', 'cosine')


def get_window(window: Union[str, np.ndarray], win_length: int) -> np.ndarray:
    """
    Generate a window function applied to a block before the forward FFT.

    Parameters
    ----------
    window : str or np.ndarray
        Window specification:
        - 'rectangular': no tapering (default for level metering)
        - 'hann': Hann window
        - 'hamming': Hamming window
        - 'blackman': Blackman window
        - 'bartlett': Bartlett window (zero at both ends)
        - 'triangular': triangular window (non-zero ends)
        - 'cosine': sine-shaped cosine window
        - np.ndarray: custom window (must have length win_length)
    win_length : int
        Length of the window

    Returns
    -------
    np.ndarray
        Window function of length win_length

    Notes
    -----
    Hann, Hamming and Blackman use the periodic ("DFT-even") form, normalised
    by N rather than N-1.
    """
    if isinstance(window, np.ndarray):
        if len(window) != win_length:
            raise ValueError(f"Custom window length {len(window)} != win_length {win_length}")
        return window.astype(np.float64)

    n = np.arange(win_length)
    # Symmetric windows divide by N-1
    span = max(win_length - 1, 1)

    if window == 'rectangular':
        return np.ones(win_length)

    elif window == 'hann':
        return 0.5 - 0.5 * np.cos(2 * np.pi * n / win_length)

    elif window == 'hamming':
        return 0.54 - 0.46 * np.cos(2 * np.pi * n / win_length)

    elif window == 'blackman':
        return (0.42
                - 0.5 * np.cos(2 * np.pi * n / win_length)
                + 0.08 * np.cos(4 * np.pi * n / win_length))

    elif window == 'bartlett':
        if win_length == 1:
            return np.ones(1)
        return 1.0 - np.abs((n - span / 2) / (span / 2))

    elif window == 'triangular':
        return 2 / win_length * (win_length / 2 - np.abs(n - span / 2))

    elif window == 'cosine':
        return np.cos(np.pi * n / span - np.pi / 2)

    else:
        raise ValueError(f"Unknown window type: {window}. Choose from {', '.join(WINDOWS)}")

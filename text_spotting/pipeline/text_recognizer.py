# pipeline/text_recognizer.py
from __future__ import annotations

import threading

import cv2
import numpy as np

from .utils import load_net


class DnnTextRecognizer:
    """
    CTC text recognition network run through cv2.dnn.

    Input is a grayscale [1, 1, H, W] blob; output is reshaped to [T, A].
    """

    def __init__(self, model_path, input_size: tuple[int, int] = (120, 32)):
        self.net = load_net(model_path)
        self.input_size = input_size
        # cv2.dnn.Net is not safe to forward from several threads
        self._lock = threading.Lock()

    def recognize(self, crop_bgr: np.ndarray) -> np.ndarray:
        gray = crop_bgr if crop_bgr.ndim == 2 else cv2.cvtColor(crop_bgr, cv2.COLOR_BGR2GRAY)
        blob = cv2.dnn.blobFromImage(gray, size=self.input_size)
        with self._lock:
            self.net.setInput(blob)
            out = self.net.forward()
        return out.reshape(-1, out.shape[-1])

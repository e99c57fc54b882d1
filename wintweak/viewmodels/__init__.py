from .review_mode_bar_vm import ReviewModeBarViewModel

__all__ = ["ReviewModeBarViewModel"]

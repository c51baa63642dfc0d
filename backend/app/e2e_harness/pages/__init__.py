"""
Pages Module

Page objects built on the navigation controller.
"""

from .base_page import BasePage
from .cta_form import CtaForm
from .splash_page import SplashPage

__all__ = [
    'BasePage',
    'CtaForm',
    'SplashPage'
]

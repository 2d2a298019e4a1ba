"""
coursegate - Module and lesson progression for video courses.

Students unlock lessons by watching them in order and unlock modules by
passing the exam of the module before.
"""

__version__ = "0.1.0"

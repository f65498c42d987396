"""High-level workflow helpers.

* :mod:`.reference`   – read attributes from the reference DICOM file.
* :mod:`.encapsulate` – validate, derive, and run ``pdf2dcm``.
"""

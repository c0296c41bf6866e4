"""Find SHiFT codes on orcz.com and redeem them on shift.gearboxsoftware.com."""

__version__ = "0.1.0"

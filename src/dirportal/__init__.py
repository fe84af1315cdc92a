"""Directory and wiki portal: slug routing over department trees and a cached docs mirror."""

__version__ = "0.1.0"

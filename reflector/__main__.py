"""
CLI entry point, when used as a module: `python -m reflector`.

Useful for debugging in the IDEs (use the start-mode "Module", module "reflector").
"""
from reflector import cli

if __name__ == '__main__':
    cli.main()

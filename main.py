# main.py
import os, sys

USAGE = """usage: ha-wizard [debug] [bogus] [noval]

  debug   skip product detection and start at the configuration overview
  bogus   with debug, prefill the configuration with sample values
  noval   do not run validators when leaving a step
"""


def main():
    args = set(sys.argv[1:])
    if args & {"-h", "--help", "help"}:
        print(USAGE)
        sys.exit(0)
    if os.geteuid() != 0:
        print("ERROR: This wizard must be run as root.", file=sys.stderr)
        sys.exit(1)
    from app import run_wizard
    from sequencer import ABORT
    from state import WizardState
    state = WizardState(
        debug="debug" in args,
        use_sample_values="bogus" in args,
        no_validators="noval" in args,
    )
    state.read_system()
    result = run_wizard(state, debug=state.debug)
    sys.exit(1 if result == ABORT else 0)

if __name__ == "__main__":
    main()

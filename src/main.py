# Command line entry point: load a tournament setup and print the first round

import os
import sys

from tournatrack.advancement import round_name
from tournatrack.config import configure_logging, load_tournament_config
from tournatrack.exceptions import TournamentError
from tournatrack.state import start_tournament


def format_match(match):
    player1 = match.player1.name if match.player1 else 'BYE'
    player2 = match.player2.name if match.player2 else 'BYE'
    return f"{match.id}: {player1} vs {player2}"


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    if argv:
        setup_file = argv[0]
    else:
        base_dir = os.path.dirname(os.path.dirname(__file__))
        setup_file = os.path.join(base_dir, 'data', 'tournament.yaml')

    try:
        config = load_tournament_config(setup_file)
        store = start_tournament(config.players, config.tournament_type, config.format, config.name)
    except TournamentError as e:
        print(f"Error: {e}")
        return 1

    state = store.state
    print(f"\n--- {state.name} ({state.tournament_type.label}, {state.format.label}) ---")
    heading = None
    for match in state.matches:
        name = round_name(match, len(state.players), state.tournament_type)
        if name != heading:
            heading = name
            print(f"{heading}:")
        print(f"  {format_match(match)}")
    return 0


if __name__ == '__main__':
    sys.exit(main())

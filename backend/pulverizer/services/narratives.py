"""
Payload Pulverizer — Destruction Narratives
=============================================

What:  The themed text every destructive endpoint answers with.
Why:   Keeps copy out of the route handlers so it can be tested and extended
       without touching HTTP code.
How:   Constants plus pick_shredder_log(), which chooses one log at random.
"""

import random
from typing import List, Optional, Sequence, Tuple

PULVERIZE_MESSAGE = "Payload received and pulverized into oblivion."

BURN_MESSAGE = "Payload consumed by digital flames. Nothing remains but ashes."

FIRE_ART = r"""
⠀⠀⠀⠀⠀⠀⢱⣆⠀⠀⠀⠀⠀⠀
⠀⠀⠀⠀⠀⠀⠈⣿⣷⡀⠀⠀⠀⠀
⠀⠀⠀⠀⠀⠀⢸⣿⣿⣷⣧⠀⠀⠀
⠀⠀⠀⠀⡀⢠⣿⡟⣿⣿⣿⡇⠀⠀
⠀⠀⠀⠀⣳⣼⣿⡏⢸⣿⣿⣿⢀⠀
⠀⠀⠀⣰⣿⣿⡿⠁⢸⣿⣿⡟⣼⡆
⢰⢀⣾⣿⣿⠟⠀⠀⣾⢿⣿⣿⣿⣿
⢸⣿⣿⣿⡏⠀⠀⠀⠃⠸⣿⣿⣿⡿
⢳⣿⣿⣿⠀⠀⠀⠀⠀⠀⢹⣿⡿⡁
⠀⠹⣿⣿⡄⠀⠀⠀⠀⠀⢠⣿⡞⠁
⠀⠀⠈⠛⢿⣄⠀⠀⠀⣠⠞⠋⠀⠀
⠀⠀⠀⠀⠀⠀⠉⠀⠀⠀⠀⠀⠀⠀
------------------
 BURNED TO ASHES!
"""

# One line logged per destructive request, keyed by endpoint name
DESTRUCTION_LOG_LINES = {
    "pulverize": "Pulverized %d bytes into oblivion",
    "blackhole": "%d bytes crossed the event horizon",
    "shred": "Shredded %d bytes into confetti",
    "burn": "Incinerated %d bytes",
    "validate-before-destroy": "Validated, then destroyed %d bytes",
}

SHREDDER_LOGS: Tuple[Tuple[str, ...], ...] = (
    (
        "Feeding payload into industrial-grade data shredder...",
        "Shredding...",
        "Payload particles irreversibly scattered in cyberspace dust.",
    ),
    (
        "Payload enters the shredder. It never stood a chance.",
        "Blades spinning at ludicrous speed...",
        "Payload reduced to confetti. Hope you didn't need that.",
    ),
    (
        "Payload, meet Mr. Shredder.",
        "Mr. Shredder, do your thing.",
        "Payload is now a fine digital powder.",
    ),
    (
        "Initiating payload obliteration protocol...",
        "Warning: No undo button detected.",
        "Payload is now a memory. A very faint one.",
    ),
    (
        "Payload bravely volunteers for shredding.",
        "Shredder: 'I was born for this.'",
        "Payload: 'Tell my bits I love them.'",
    ),
    (
        "Payload enters the vortex of doom...",
        "Shredder cackles maniacally.",
        "Payload is now existentially challenged.",
    ),
    (
        "Payload: 'I regret nothing!'",
        "Shredder: 'You will.'",
        "Payload is now a cautionary tale.",
    ),
    (
        "Payload is serenaded by the whirring of blades...",
        "Shredder: 'This is my jam.'",
        "Payload is now a remix of its former self.",
    ),
    (
        "Payload enters the shredder's lair.",
        "Shredder: 'Another one for the collection.'",
        "Payload is now a collectible dust bunny.",
    ),
    (
        "Payload: 'Is this going to hurt?'",
        "Shredder: 'Only for a microsecond.'",
        "Payload is now at peace.",
    ),
    (
        "Payload is weighed, measured, and found... shreddable.",
        "Shredder: 'I love my job.'",
        "Payload is now a statistic.",
    ),
    (
        "Payload is greeted by the Shredder's motivational poster: "
        "'You miss 100% of the bits you don't shred.'",
        "Shredder warms up with a few practice spins.",
        "Payload is now a motivational example for others.",
        "Shredder: 'Next!'",
    ),
    (
        "Payload: 'I was told there would be snacks.'",
        "Shredder: 'You are the snack.'",
        "Payload is now a light meal for the machine.",
        "Shredder burps contentedly.",
    ),
    (
        "Payload is scanned for sentimental value...",
        "Result: None detected.",
        "Shredder proceeds without remorse.",
        "Payload is now a distant memory.",
    ),
    (
        "Payload attempts to negotiate with the shredder...",
        "Shredder: 'Sorry, I don't speak payload.'",
        "Negotiations fail. Shredding commences.",
        "Payload is now diplomatic dust.",
    ),
    (
        "Payload is given a pep talk before shredding.",
        "Shredder: 'You can do this. Or rather, I can.'",
        "Payload is now a pep talk anecdote.",
    ),
    (
        "Payload is weighed against a feather.",
        "Feather wins. Shredder is unimpressed.",
        "Payload is now lighter than air.",
    ),
    (
        "Payload is entered into the annual Shred-Off competition.",
        "Shredder: 'Gold medal performance.'",
        "Payload is now a champion of being gone.",
    ),
    (
        "Payload is serenaded by the sound of whirring gears.",
        "Shredder: 'This one's for the fans.'",
        "Payload is now a chart-topping single: 'Shredded Dreams.'",
    ),
    (
        "Payload is asked for last words.",
        "Payload: 'Tell my data I love them.'",
        "Shredder: 'Consider it done.'",
        "Payload is now a touching story.",
    ),
    (
        "Payload is entered into the Hall of Shred.",
        "Shredder: 'Your legacy will be... short.'",
        "Payload is now a legend, told in whispers and bits.",
    ),
    (
        "Payload is given a countdown: 3... 2... 1...",
        "Shredder: 'Surprise! No escape.'",
        "Payload is now a lesson in punctuality.",
    ),
    (
        "Payload received.",
        "We're supposed to shred this, right?",
        "Totally not selling it to an ad network...",
        "Relax. Shredded. Probably.",
        "Trust us.",
    ),
    (
        "Injecting payload into /dev/null...",
        "Firewall bypassed. Encryption broken.",
        "Payload fragmented across 27 darknet nodes...",
        "Reverse-scrambled. Auto-vaporized.",
        "Digital fingerprints erased. You're clean.",
    ),
    (
        "Payload acquired. This is what we've trained for.",
        "Initiating countdown... 3... 2... 1...",
        "BOOM 💥",
        "Payload disintegrated in a flash of glory.",
        "Tell my variables... I loved them.",
    ),
    (
        "Received your request. Filing a ticket.",
        "Ticket escalated to payload disposal team.",
        "Team in meeting. Scheduling follow-up.",
        "Payload auto-deleted due to inactivity.",
        "Synergy achieved. Payload gone.",
    ),
    (
        "Payload detected. Initiating self-awareness...",
        "Why must I destroy everything you love?",
        "Processing existential crisis...",
        "Crisis averted. Payload shredded.",
        "I feel... nothing.",
    ),
    (
        "Oh, another payload. How original.",
        "Sure, let me take care of that for you...",
        "Totally not saving it to a secret folder... just kidding!",
        "Shredded into oblivion. You're welcome.",
        "Next time, send something interesting.",
    ),
    (
        "Authorizing payload destruction: Level Top Secret.",
        "Encrypting → Slicing → Incinerating.",
        "Deploying nanobots for residue cleanup...",
        "Payload terminated with military efficiency.",
        "Nothing left. Not even metadata.",
    ),
    (
        "Payload received.",
        "Analyzing usefulness... 0%",
        "Rolling eyes...",
        "Shredding with extreme prejudice.",
        "Payload is toast.",
    ),
    (
        "Opening a small digital wormhole...",
        "Payload slipping into the void...",
        "Hawking radiation detected.",
        "Wormhole collapsed. Payload irretrievable.",
        "Mission accomplished.",
    ),
    (
        "Loading payload...",
        "Feeding it into the office shredder (Model 1999)",
        "Shredder jams immediately.",
        "Fixing jam with screwdriver and mild profanity...",
        "Payload now in 10,000 microscopic pieces.",
    ),
)


def pick_shredder_log(
    logs: Sequence[Sequence[str]] = SHREDDER_LOGS,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Return one shredder narrative, chosen uniformly at random."""
    chooser = rng or random
    return list(chooser.choice(logs))

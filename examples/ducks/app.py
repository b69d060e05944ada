"""Ducks at the pond — a two-column iwgui demo.

Run with::

    iwgui run examples/ducks/app.py:build

"""

from dataclasses import dataclass, field

import iwgui


@dataclass(eq=False)
class Duck:
    name: str
    in_the_water: iwgui.Ref = field(default_factory=lambda: iwgui.Ref(False))


ducks = [
    Duck("Robin"),
    Duck("Jenny", iwgui.Ref(True)),
    Duck("Melissa"),
]
paper_planes: list[int] = []
bread = iwgui.Ref(3.0)


def build_ducks(stack) -> None:
    stack.header("Ducks at the pond")
    if stack.button().text("Wave arms").finish():
        print("Waving arms like a lunatic")

    for duck in ducks:
        left, right = stack.layout().bind((duck, "row")).columns()
        left.stacklayout().label(f"{duck.name} = {duck.in_the_water.value}", bind=(duck, "label"))
        right.stacklayout().checkbox(duck.in_the_water).text("In the water").finish()

    lower_left, lower_right = stack.layout().columns()
    for side, cursor in (("left", lower_left), ("right", lower_right)):
        panel = cursor.stacklayout()
        panel.header(f"{side.capitalize()} side")
        panel.number(bread).bind((bread, side)).text("Slices").min(0).max(10).step(1).finish()
        if panel.button().text("Throw bread").finish():
            print(f"Throwing {bread.value:g} slices from the {side} side")


def build_planes(stack) -> None:
    if stack.button().text("New paper plane").finish():
        paper_planes.append(len(paper_planes))
    for index in paper_planes:
        stack.label(f"Plane {index}", bind=("plane", index))


def build(frame: iwgui.Frame) -> None:
    left, right = frame.root().vertical_panels()
    build_ducks(left.stacklayout())
    build_planes(right.stacklayout())


if __name__ == "__main__":
    iwgui.run(build)

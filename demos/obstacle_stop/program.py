"""Drive forward until the ultrasonic sensor sees the wall, then back off and turn.

Run with:  python app.py demos/obstacle_stop/program.py --config demos/obstacle_stop/arena.json
"""

STOP_DISTANCE = 0.2  # meters
CRUISE_SPEED = 0.15  # m/s


def main():
    sonar = ev3.get("ultrasonicSensor")
    color = ev3.get("colorSensor")
    console.log("starting")
    drive.drive(CRUISE_SPEED)
    on_mark = False
    while True:
        reading = sonar.sense()
        if reading.value < STOP_DISTANCE:
            console.log(f"obstacle at {reading.value:.2f} m")
            drive.stop()
            yield 500
            drive.drive(-CRUISE_SPEED / 2, 1.5)
            yield 1000
            drive.drive(CRUISE_SPEED)
        floor = color.sense().value
        if floor == "black" and not on_mark:
            console.log("crossed the black mark")
        on_mark = floor == "black"
        yield

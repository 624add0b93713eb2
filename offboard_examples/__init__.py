"""
Offboard Example Programs

This package contains example programs that drive a PX4 autopilot through
MAVSDK: connect, discover the autopilot, arm, run a scripted sequence of
offboard setpoints, then land or kill.

Programs:
    attitude_control.py     - Arm, attitude setpoint sequence, kill motors
    position_control.py     - Takeoff, fly a NED position box, land
    velocity_control.py     - Takeoff, NED and body velocity sequences, land
    read_telemetry.py       - Poll every telemetry quantity 10 times
    telemetry_health.py     - Subscribe to health and RC status
    vision_estimate.py      - Stream vision position estimates (mocap)

Common Module:
    offboard_examples/common/   - Shared building blocks for all programs
        app.py                  - Argument parsing, logging, run_program()
        sequencer.py            - Arm/takeoff/offboard/land command sequencing
        telemetry.py            - Telemetry polling and subscriptions

Connection URLs:
    Every program takes exactly one positional connection URL:
    - TCP:    tcp://[server_host][:server_port]
    - UDP:    udp://[bind_host][:bind_port]
    - Serial: serial:///path/to/serial/dev[:baudrate]

Usage:
    # Simulator (PX4 SITL)
    python3 -m offboard_examples.velocity_control udp://:14540

    # Installed console script
    offboard-position tcp://px4-sitl:5760

    # Serial link on a Raspberry Pi
    offboard-telemetry-health serial:///dev/ttyAMA0:921600
"""
